"""
Listing, search and pagination for the public pages and the admin panel.
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, TypeVar

from core.models import BookGenre, BookStatus, Expert, SubscriptionTier, UserRole, UserStatus

T = TypeVar("T")

EXPERTS_PER_PAGE = 8
BUZZ_PER_PAGE = 24
BOOKS_PER_PAGE = 10
ADMIN_USERS_PER_PAGE = 10

USER_FILTERS = ("all", "active", "disabled", "premium")


class Page(NamedTuple):
    items: List
    page: int
    total_pages: int
    total: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence[T], page: int = 1, per_page: int = 10) -> Page:
    """1-based page; out-of-range pages are clamped."""
    items = list(items)
    total = len(items)
    total_pages = max(1, math.ceil(total / per_page))
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return Page(items=items[start:start + per_page], page=page, total_pages=total_pages, total=total)


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in (haystack or "").lower()


def expert_matches_query(expert: Expert, query: str) -> bool:
    """
    Generic search over name, genre, book titles/authors and the want.
    Wants of any tier are searchable here; only the Title Hive is premium-only.
    """
    q = (query or "").strip().lower()
    if not q:
        return True
    if _contains(expert.name, q) or _contains(expert.genre.value, q):
        return True
    if any(_contains(b.title, q) or _contains(b.author, q) for b in expert.books):
        return True
    want = expert.book_query
    return bool(want and (_contains(want.title, q) or _contains(want.author, q)))


def filter_experts(
    experts: Iterable[Expert],
    query: str | None = None,
    genre: str | None = None,
) -> List[Expert]:
    genre_value = None
    if genre:
        try:
            genre_value = BookGenre(genre)
        except ValueError:
            return []
    return [
        e
        for e in experts
        if e.role == UserRole.EXPERT
        and (genre_value is None or e.genre == genre_value)
        and expert_matches_query(e, query or "")
    ]


def title_hive(experts: Iterable[Expert], query: str | None = None) -> List[Expert]:
    """Premium experts with a complete want ("buzzes"), optionally searched by want title/author."""
    q = (query or "").strip().lower()
    buzzing = [
        e
        for e in experts
        if e.subscription_tier == SubscriptionTier.PREMIUM
        and e.book_query is not None
        and e.book_query.title
        and e.book_query.author
    ]
    if not q:
        return buzzing
    return [e for e in buzzing if _contains(e.book_query.title, q) or _contains(e.book_query.author, q)]


def filter_users(
    experts: Iterable[Expert],
    user_filter: str = "all",
    search: str | None = None,
    tab: str = "experts",
) -> List[Expert]:
    """
    Admin user management. The experts tab applies the status/tier filter and the
    name/email search; the system tab lists every non-expert account.
    """
    experts = list(experts)
    if tab == "system":
        return [e for e in experts if e.role != UserRole.EXPERT]

    q = (search or "").strip().lower()
    result = []
    for e in experts:
        if e.role != UserRole.EXPERT:
            continue
        if user_filter == "premium" and e.subscription_tier != SubscriptionTier.PREMIUM:
            continue
        if user_filter in (UserStatus.ACTIVE.value, UserStatus.DISABLED.value) and e.status.value != user_filter:
            continue
        if q and not (_contains(e.name, q) or _contains(e.email, q)):
            continue
        result.append(e)
    return result


class PlatformSummary(NamedTuple):
    total_experts: int
    premium_experts: int
    on_leave: int
    total_books: int
    sold_books: int
    available_books: int
    reserved_books: int
    genre_distribution: List[tuple]
    country_distribution: List[tuple]
    recent_experts: List[Expert]

    def as_dict(self) -> Dict:
        return {
            "total_experts": self.total_experts,
            "premium_experts": self.premium_experts,
            "experts_on_leave": self.on_leave,
            "total_books": self.total_books,
            "sold_books": self.sold_books,
            "available_books": self.available_books,
            "reserved_books": self.reserved_books,
            "genre_distribution": dict(self.genre_distribution),
            "country_distribution": dict(self.country_distribution),
        }


def platform_summary(experts: Iterable[Expert], recent: int = 5) -> PlatformSummary:
    """Stats over real expert accounts only; demo experts are left out."""
    platform = [e for e in experts if e.role == UserRole.EXPERT and not e.is_example]
    books = [b for e in platform for b in e.books]
    genres = Counter(e.genre.value for e in platform)
    countries = Counter(e.country for e in platform if e.country)
    return PlatformSummary(
        total_experts=len(platform),
        premium_experts=sum(1 for e in platform if e.subscription_tier == SubscriptionTier.PREMIUM),
        on_leave=sum(1 for e in platform if e.on_leave),
        total_books=len(books),
        sold_books=sum(1 for b in books if b.status == BookStatus.SOLD),
        available_books=sum(1 for b in books if b.status == BookStatus.AVAILABLE),
        reserved_books=sum(1 for b in books if b.status == BookStatus.RESERVED),
        genre_distribution=genres.most_common(),
        country_distribution=countries.most_common(),
        recent_experts=sorted(platform, key=lambda e: e.created_at, reverse=True)[:recent],
    )


__all__ = [
    "EXPERTS_PER_PAGE",
    "BUZZ_PER_PAGE",
    "BOOKS_PER_PAGE",
    "ADMIN_USERS_PER_PAGE",
    "USER_FILTERS",
    "Page",
    "paginate",
    "expert_matches_query",
    "filter_experts",
    "title_hive",
    "filter_users",
    "PlatformSummary",
    "platform_summary",
]

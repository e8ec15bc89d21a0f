"""
Title Hive matching: which newly listed books satisfy which registered wants.
"""
from __future__ import annotations

from typing import Iterable, List, NamedTuple

from core.entitlements import Feature, is_feature_enabled
from core.models import Book, BookQuery, BookStatus, Expert


class Match(NamedTuple):
    book: Book
    want: BookQuery
    searcher: Expert
    seller: Expert


def delta(old_books: Iterable[Book], new_books: Iterable[Book]) -> List[Book]:
    """
    Books in `new_books` whose id was not in `old_books` and that are available now.
    Order follows `new_books`.
    """
    old_ids = {b.id for b in old_books or ()}
    return [b for b in new_books or () if b.id not in old_ids and b.status == BookStatus.AVAILABLE]


def match(book: Book, want: BookQuery) -> bool:
    """
    Case-insensitive containment: the book title contains the wanted title AND the book
    author contains the wanted author. Publisher, edition and year are not compared.
    """
    return (
        want.title.lower() in (book.title or "").lower()
        and want.author.lower() in (book.author or "").lower()
    )


def is_eligible_searcher(searcher: Expert, seller: Expert) -> bool:
    """A want takes part in alerting only for premium owners, never for the seller themself."""
    want = searcher.book_query
    if want is None or not want.title or not want.author:
        return False
    if searcher.id == seller.id:
        return False
    if searcher.is_example:
        # Seed experts have no real mailbox.
        return False
    return is_feature_enabled(searcher.subscription_tier, Feature.WANT_REGISTRATION)


def eligible_searchers(experts: Iterable[Expert], seller: Expert) -> List[Expert]:
    return [e for e in experts if is_eligible_searcher(e, seller)]


def find_matches(new_books: Iterable[Book], seller: Expert, experts: Iterable[Expert]) -> List[Match]:
    """
    Cross product of new books and eligible wants.
    One Match per (book, want) pair; nothing is de-duplicated.
    """
    new_books = list(new_books)
    if not new_books:
        return []

    searchers = eligible_searchers(experts, seller)
    matches: List[Match] = []
    for book in new_books:
        for searcher in searchers:
            if match(book, searcher.book_query):
                matches.append(Match(book=book, want=searcher.book_query, searcher=searcher, seller=seller))
    return matches


__all__ = [
    "Match",
    "delta",
    "match",
    "is_eligible_searcher",
    "eligible_searchers",
    "find_matches",
]

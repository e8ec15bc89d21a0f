"""
Profile edits, sign-up and administrator operations on experts.

Book list replacements go through core.hive.inventory.save_books instead, so that
new arrivals are matched against the Title Hive.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from core.db.experts.auth import MIN_PASSWORD_LENGTH
from core.directory import ExpertDirectory, get_directory
from core.entitlements import Feature, check_spotlight_count, is_feature_enabled, require_feature
from core.errors import ValidationError
from core.models import (
    SPOTLIGHT_CONTENT_MAX,
    SPOTLIGHT_TITLE_MAX,
    BookGenre,
    BookQuery,
    BookStatus,
    Expert,
    PresentOffer,
    SocialLinks,
    Spotlight,
    SubscriptionTier,
    UserRole,
    UserStatus,
)

log = logging.getLogger(__name__)

PRESENT_OFFER_MESSAGE_MAX = 150

# Premium-only profile fields and the feature that unlocks each.
PREMIUM_FIELDS = {
    "on_leave": Feature.AWAY_STATUS,
    "present_offer": Feature.SPECIAL_OFFERS,
}


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def _genre(value) -> BookGenre:
    try:
        return BookGenre(value)
    except ValueError:
        raise ValidationError("Please select a genre.") from None


def _social_links(value) -> Optional[SocialLinks]:
    if value is None:
        return None
    links = value if isinstance(value, SocialLinks) else SocialLinks(
        **{k: (_text(v) or None) for k, v in dict(value).items()}
    )
    return None if links.is_empty() else links


def _book_query(value) -> Optional[BookQuery]:
    if value is None or isinstance(value, BookQuery):
        return value
    data = dict(value)
    year = _text(data.get("year"))
    try:
        year_value = int(year) if year else None
    except ValueError:
        raise ValidationError("Year must be a whole number.") from None
    return BookQuery.from_form(
        data.get("title"),
        data.get("author"),
        publisher=data.get("publisher"),
        edition=data.get("edition"),
        year=year_value,
    )


def build_spotlights(rows: Iterable[Any], expert: Expert) -> List[Spotlight]:
    """Keep rows that have both a title and content; enforce lengths and the tier ceiling."""
    book_ids = {b.id for b in expert.books}
    spotlights: List[Spotlight] = []
    for row in rows:
        data = row.model_dump() if isinstance(row, Spotlight) else dict(row)
        title = _text(data.get("title"))
        content = _text(data.get("content"))
        if not (title and content):
            continue
        if len(title) > SPOTLIGHT_TITLE_MAX:
            raise ValidationError(f"Spotlight titles are limited to {SPOTLIGHT_TITLE_MAX} characters.")
        if len(content) > SPOTLIGHT_CONTENT_MAX:
            raise ValidationError(f"Spotlight content is limited to {SPOTLIGHT_CONTENT_MAX} characters.")
        featured = _text(data.get("featured_book_id")) or None
        if featured and featured not in book_ids:
            raise ValidationError("A spotlight can only feature one of your own books.")
        spotlights.append(
            Spotlight(
                id=_text(data.get("id")) or str(uuid.uuid4()),
                title=title,
                content=content,
                featured_book_id=featured,
                audio_url=_text(data.get("audio_url")) or None,
            )
        )
    check_spotlight_count(expert.subscription_tier, len(spotlights))
    return spotlights


def build_present_offer(value, expert: Expert) -> Optional[PresentOffer]:
    """An offer needs a gift book and a positive purchase threshold; otherwise it is cleared."""
    require_feature(expert.subscription_tier, Feature.SPECIAL_OFFERS)
    if value is None:
        return None
    if isinstance(value, PresentOffer):
        data = value.model_dump()
    else:
        data = dict(value)
    book_id = _text(data.get("book_id"))
    required = _text(data.get("books_required"))
    if not book_id or not required:
        return None
    try:
        books_required = int(required)
    except ValueError:
        raise ValidationError("Books to purchase must be a whole number.") from None
    if books_required < 1:
        return None

    book = expert.book_by_id(book_id)
    if book is None or book.status != BookStatus.AVAILABLE:
        raise ValidationError("The gift book must be one of your available books.")
    message = _text(data.get("message")) or None
    if message and len(message) > PRESENT_OFFER_MESSAGE_MAX:
        raise ValidationError(f"The offer message is limited to {PRESENT_OFFER_MESSAGE_MAX} characters.")
    return PresentOffer(book_id=book_id, books_required=books_required, message=message)


def update_profile(
    expert_id: str,
    changes: Dict[str, Any],
    directory: Optional[ExpertDirectory] = None,
) -> Expert:
    """
    Validate and persist profile edits.

    Only keys present in `changes` are touched. Premium-only fields are dropped for
    experts whose tier does not include the feature.
    """
    directory = directory or get_directory()
    expert = directory.require(expert_id)
    payload: Dict[str, Any] = {}

    if "name" in changes:
        name = _text(changes["name"])
        if not name:
            raise ValidationError("Name is required.")
        payload["name"] = name
    if "email" in changes:
        email = _text(changes["email"])
        if not email or "@" not in email:
            raise ValidationError("Please enter a valid email address.")
        payload["email"] = email
    if "genre" in changes:
        payload["genre"] = _genre(changes["genre"])
    if "country" in changes:
        payload["country"] = _text(changes["country"]) or None
    if "bio" in changes:
        payload["bio"] = _text(changes["bio"])
    if "avatar_url" in changes:
        payload["avatar_url"] = _text(changes["avatar_url"]) or None
    if "social_links" in changes:
        payload["social_links"] = _social_links(changes["social_links"])
    if "book_query" in changes:
        payload["book_query"] = _book_query(changes["book_query"])
    if "spotlights" in changes:
        payload["spotlights"] = build_spotlights(changes["spotlights"] or [], expert)

    for field, feature in PREMIUM_FIELDS.items():
        if field not in changes:
            continue
        if not is_feature_enabled(expert.subscription_tier, feature):
            log.info("Ignoring premium-only field", extra={"expert_id": expert_id, "field": field})
            continue
        if field == "on_leave":
            payload["on_leave"] = bool(changes["on_leave"])
        else:
            payload["present_offer"] = build_present_offer(changes["present_offer"], expert)

    if not payload:
        return expert
    return directory.save(expert_id, payload)


def create_profile(
    data: Dict[str, Any],
    raw_password: str,
    directory: Optional[ExpertDirectory] = None,
) -> Expert:
    """Sign-up: new experts start active on the free tier with no books."""
    directory = directory or get_directory()
    name = _text(data.get("name"))
    email = _text(data.get("email"))
    if not name:
        raise ValidationError("Name is required.")
    if not email or "@" not in email:
        raise ValidationError("Please enter a valid email address.")
    if len(raw_password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    expert = directory.store.create_expert(
        {
            "name": name,
            "email": email,
            "genre": _genre(data.get("genre")),
            "country": _text(data.get("country")) or None,
            "bio": _text(data.get("bio")),
            "avatar_url": _text(data.get("avatar_url")) or None,
            "social_links": _social_links(data.get("social_links")),
            "role": UserRole.EXPERT,
            "status": UserStatus.ACTIVE,
            "subscription_tier": SubscriptionTier.FREE,
            "on_leave": False,
            "books": [],
            "spotlights": [],
        },
        raw_password,
    )
    directory.invalidate()
    log.info("Expert signed up", extra={"expert_id": expert.id})
    return expert


def upgrade_to_premium(expert_id: str, directory: Optional[ExpertDirectory] = None) -> Expert:
    directory = directory or get_directory()
    directory.require(expert_id)
    return directory.save(expert_id, {"subscription_tier": SubscriptionTier.PREMIUM})


def set_status(expert_id: str, status, directory: Optional[ExpertDirectory] = None) -> Expert:
    """Enable or disable an expert. Demo experts cannot be changed."""
    directory = directory or get_directory()
    try:
        status = UserStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown status: {status}") from None
    if directory.is_example(expert_id):
        raise ValidationError("Cannot change status of an example user.")
    directory.require(expert_id)
    return directory.save(expert_id, {"status": status})


def delete_experts(expert_ids: Iterable[str], directory: Optional[ExpertDirectory] = None) -> int:
    """Erase stored experts; demo experts in the selection are skipped."""
    directory = directory or get_directory()
    ids = list(expert_ids)
    skipped = [i for i in ids if directory.is_example(i)]
    if skipped:
        log.warning("Skipping example experts on delete", extra={"ids": skipped})
    return directory.delete(ids)


__all__ = [
    "PREMIUM_FIELDS",
    "build_spotlights",
    "build_present_offer",
    "update_profile",
    "create_profile",
    "upgrade_to_premium",
    "set_status",
    "delete_experts",
]

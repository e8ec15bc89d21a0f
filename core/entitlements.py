"""
Subscription entitlement gate.

Every tier-dependent decision goes through this module: book and spotlight ceilings,
and the premium-only features (want participation in the Title Hive, special offers,
away status). Callers re-check limits at the point of mutation and reject the change
instead of truncating.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, NamedTuple

from core.errors import FeatureNotAvailableError, LimitExceededError
from core.models import SubscriptionTier


class Feature(str, Enum):
    WANT_REGISTRATION = "want_registration"
    SPECIAL_OFFERS = "special_offers"
    AWAY_STATUS = "away_status"


class TierLimits(NamedTuple):
    max_books: int
    max_spotlights: int


FREE_BOOK_LIMIT = 35
PREMIUM_BOOK_LIMIT = 150
FREE_SPOTLIGHT_LIMIT = 1
PREMIUM_SPOTLIGHT_LIMIT = 3

_LIMITS: Dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.FREE: TierLimits(max_books=FREE_BOOK_LIMIT, max_spotlights=FREE_SPOTLIGHT_LIMIT),
    SubscriptionTier.PREMIUM: TierLimits(max_books=PREMIUM_BOOK_LIMIT, max_spotlights=PREMIUM_SPOTLIGHT_LIMIT),
}

_FEATURES: Dict[SubscriptionTier, FrozenSet[Feature]] = {
    SubscriptionTier.FREE: frozenset(),
    SubscriptionTier.PREMIUM: frozenset(Feature),
}


def limits(tier: SubscriptionTier) -> TierLimits:
    return _LIMITS[SubscriptionTier(tier)]


def is_feature_enabled(tier: SubscriptionTier, feature: Feature) -> bool:
    return Feature(feature) in _FEATURES[SubscriptionTier(tier)]


def require_feature(tier: SubscriptionTier, feature: Feature) -> None:
    if not is_feature_enabled(tier, feature):
        raise FeatureNotAvailableError("This feature is only available to premium experts.")


def check_book_count(tier: SubscriptionTier, count: int) -> None:
    max_books = limits(tier).max_books
    if count <= max_books:
        return
    if SubscriptionTier(tier) == SubscriptionTier.PREMIUM:
        message = f"You have reached your premium limit of {PREMIUM_BOOK_LIMIT} books."
    else:
        message = (
            f"You have reached your limit of {FREE_BOOK_LIMIT} books for the free tier. "
            f"Upgrade to Premium to list up to {PREMIUM_BOOK_LIMIT} books."
        )
    raise LimitExceededError("books", max_books, message)


def check_spotlight_count(tier: SubscriptionTier, count: int) -> None:
    max_spotlights = limits(tier).max_spotlights
    if count <= max_spotlights:
        return
    message = f"Your plan allows {max_spotlights} spotlight(s)."
    if SubscriptionTier(tier) == SubscriptionTier.FREE:
        message += f" Upgrade to Premium for up to {PREMIUM_SPOTLIGHT_LIMIT}."
    raise LimitExceededError("spotlights", max_spotlights, message)


__all__ = [
    "Feature",
    "TierLimits",
    "FREE_BOOK_LIMIT",
    "PREMIUM_BOOK_LIMIT",
    "FREE_SPOTLIGHT_LIMIT",
    "PREMIUM_SPOTLIGHT_LIMIT",
    "limits",
    "is_feature_enabled",
    "require_feature",
    "check_book_count",
    "check_spotlight_count",
]

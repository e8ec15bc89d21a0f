import pytest

from core.entitlements import (
    FREE_BOOK_LIMIT,
    PREMIUM_BOOK_LIMIT,
    Feature,
    check_book_count,
    check_spotlight_count,
    is_feature_enabled,
    limits,
)
from core.errors import LimitExceededError, ValidationError
from core.models import SubscriptionTier


def test_tier_limits():
    assert limits(SubscriptionTier.FREE).max_books == 35
    assert limits(SubscriptionTier.PREMIUM).max_books == 150
    assert limits(SubscriptionTier.FREE).max_spotlights == 1
    assert limits(SubscriptionTier.PREMIUM).max_spotlights == 3
    # plain strings are accepted too
    assert limits("premium").max_books == PREMIUM_BOOK_LIMIT


@pytest.mark.parametrize("feature", list(Feature))
def test_premium_features_only_for_premium(feature):
    assert is_feature_enabled(SubscriptionTier.PREMIUM, feature) is True
    assert is_feature_enabled(SubscriptionTier.FREE, feature) is False


def test_book_count_at_limit_is_allowed():
    check_book_count(SubscriptionTier.FREE, FREE_BOOK_LIMIT)
    check_book_count(SubscriptionTier.PREMIUM, PREMIUM_BOOK_LIMIT)


def test_book_count_over_limit_is_rejected():
    with pytest.raises(LimitExceededError) as exc_info:
        check_book_count(SubscriptionTier.FREE, FREE_BOOK_LIMIT + 1)
    err = exc_info.value
    assert err.kind == "books"
    assert err.limit == FREE_BOOK_LIMIT
    assert "Upgrade to Premium" in str(err)
    # limit errors are validation errors so routes render them as 400
    assert isinstance(err, ValidationError)

    with pytest.raises(LimitExceededError):
        check_book_count(SubscriptionTier.PREMIUM, PREMIUM_BOOK_LIMIT + 1)


def test_spotlight_ceiling():
    check_spotlight_count(SubscriptionTier.FREE, 1)
    check_spotlight_count(SubscriptionTier.PREMIUM, 3)
    with pytest.raises(LimitExceededError):
        check_spotlight_count(SubscriptionTier.FREE, 2)
    with pytest.raises(LimitExceededError):
        check_spotlight_count(SubscriptionTier.PREMIUM, 4)


def test_require_feature():
    from core.entitlements import require_feature
    from core.errors import FeatureNotAvailableError

    require_feature(SubscriptionTier.PREMIUM, Feature.SPECIAL_OFFERS)
    with pytest.raises(FeatureNotAvailableError):
        require_feature(SubscriptionTier.FREE, Feature.SPECIAL_OFFERS)

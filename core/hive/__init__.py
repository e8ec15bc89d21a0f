"""
Title Hive: premium wants matched against newly listed books.
"""
from core.hive.alerts import ALERT_SUBJECT, DispatchReport, build_notification, dispatch, profile_url
from core.hive.inventory import SaveResult, save_books
from core.hive.matching import Match, delta, eligible_searchers, find_matches, is_eligible_searcher, match

__all__ = [
    "ALERT_SUBJECT",
    "DispatchReport",
    "build_notification",
    "dispatch",
    "profile_url",
    "SaveResult",
    "save_books",
    "Match",
    "delta",
    "eligible_searchers",
    "find_matches",
    "is_eligible_searcher",
    "match",
]

"""
Book inventory saves.

A save replaces the expert's whole book list. The order is fixed:
validate (tier ceiling, ISBNs) -> persist -> one Title Hive scan -> best-effort alerts.
Nothing is matched or sent when the write fails.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, NamedTuple, Optional, Union

from core.books import normalize_books
from core.directory import ExpertDirectory, get_directory
from core.entitlements import check_book_count
from core.hive.alerts import Recorder, Sender, dispatch
from core.hive.matching import delta, find_matches
from core.models import Book, Expert, Notification

log = logging.getLogger("title_hive")


class SaveResult(NamedTuple):
    expert: Expert
    notifications: List[Notification]
    delivered: int
    failed: int


def _as_rows(books: Iterable[Union[Book, Dict]]) -> List[Dict]:
    return [b.model_dump(mode="json") if isinstance(b, Book) else dict(b) for b in books]


def save_books(
    expert_id: str,
    books: Iterable[Union[Book, Dict]],
    *,
    sender: Sender,
    recorder: Optional[Recorder] = None,
    directory: Optional[ExpertDirectory] = None,
    max_age: float | None = None,
    base_url: str | None = None,
) -> SaveResult:
    """
    Replace the book list of `expert_id` and alert premium searchers about new arrivals.

    Raises ValidationError subclasses before anything is written, PersistenceError if the
    write fails. Alert delivery problems are reported in the result, never raised.
    """
    directory = directory or get_directory()
    current = directory.require(expert_id)

    new_books = normalize_books(_as_rows(books), previous=current.books)
    check_book_count(current.subscription_tier, len(new_books))
    arrivals = delta(current.books, new_books)

    saved = directory.save(expert_id, {"books": new_books})
    log.info(
        "Books saved",
        extra={"expert_id": expert_id, "count": len(new_books), "arrivals": len(arrivals)},
    )

    if not arrivals:
        return SaveResult(expert=saved, notifications=[], delivered=0, failed=0)

    snapshot = directory.snapshot(max_age)
    matches = find_matches(arrivals, saved, snapshot.experts)
    if not matches:
        return SaveResult(expert=saved, notifications=[], delivered=0, failed=0)

    report = dispatch(matches, sender, recorder=recorder, base_url=base_url)
    return SaveResult(
        expert=saved,
        notifications=report.notifications,
        delivered=report.sent,
        failed=report.failed,
    )


__all__ = ["SaveResult", "save_books"]

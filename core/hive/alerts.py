"""
Title Hive alert dispatch.

One notification per match. Sending is best-effort: transport errors are logged and
written to the delivery history, never raised to the caller that saved the books.
"""
from __future__ import annotations

import logging
import os
from typing import Callable, Iterable, List, NamedTuple, Optional

from core.hive.matching import Match
from core.models import Notification

log = logging.getLogger("title_hive")

ALERT_SUBJECT = "A Book You're Searching For Is Now Available!"

Sender = Callable[[Notification], None]
Recorder = Callable[..., None]


class DispatchReport(NamedTuple):
    notifications: List[Notification]
    sent: int
    failed: int


def _public_base_url() -> str:
    return (os.getenv("PUBLIC_BASE_URL") or "http://localhost:8000").rstrip("/")


def profile_url(expert_id: str, base_url: str | None = None) -> str:
    base = (base_url or _public_base_url()).rstrip("/")
    return f"{base}/experts/{expert_id}"


def build_notification(m: Match, base_url: str | None = None) -> Notification:
    return Notification(
        to=m.searcher.email,
        subject=ALERT_SUBJECT,
        template_type="title_hive_alert",
        template_data={
            "searcher_name": m.searcher.name,
            "seller_name": m.seller.name,
            "seller_id": m.seller.id,
            "profile_url": profile_url(m.seller.id, base_url),
            "book_id": m.book.id,
            "book_title": m.book.title,
            "book_author": m.book.author,
        },
    )


def dispatch(
    matches: Iterable[Match],
    sender: Sender,
    recorder: Optional[Recorder] = None,
    base_url: str | None = None,
) -> DispatchReport:
    """
    Send one notification per match through `sender`.
    `recorder(searcher_id=..., seller_id=..., book=..., status=..., error=...)` stores history.
    """
    matches = list(matches)
    notifications: List[Notification] = []
    sent = 0
    failed = 0

    for m in matches:
        notification = build_notification(m, base_url)
        notifications.append(notification)
        error: str | None = None
        try:
            sender(notification)
            sent += 1
            log.info(
                "Title Hive alert sent",
                extra={"to": notification.to, "book_id": m.book.id, "seller_id": m.seller.id},
            )
        except Exception as exc:
            failed += 1
            error = str(exc)
            log.error(
                "Failed to send Title Hive alert",
                extra={"to": notification.to, "book_id": m.book.id, "error": error},
            )

        if recorder is None:
            continue
        try:
            recorder(
                searcher_id=m.searcher.id,
                seller_id=m.seller.id,
                book=m.book,
                status="failed" if error else "sent",
                error=error,
            )
        except Exception as exc:
            log.warning("Could not record alert delivery", extra={"error": str(exc)})

    return DispatchReport(notifications=notifications, sent=sent, failed=failed)


__all__ = [
    "ALERT_SUBJECT",
    "DispatchReport",
    "profile_url",
    "build_notification",
    "dispatch",
]

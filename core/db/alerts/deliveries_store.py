"""
Title Hive alert delivery history.

One row per notification attempt: who searched, who listed the book, which book, and
whether the email went out. Book fields are copied because books live inside the
seller's record and may be edited or removed later.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.db.base import get_conn
from core.models import Book

log = logging.getLogger(__name__)


def record_alert_delivery(
    *,
    searcher_id: str,
    seller_id: str,
    book: Book,
    status: str,
    error: Optional[str] = None,
) -> None:
    now = datetime.now(timezone.utc)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO alert_deliveries
          (searcher_id, seller_id, book_id, book_title, book_author, status, created_at, sent_at, error)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            searcher_id,
            seller_id,
            book.id,
            book.title,
            book.author,
            status,
            now,
            now if status == "sent" else None,
            f"{error}".strip()[:500] if error else None,
        ),
    )
    conn.commit()
    conn.close()


def get_alert_deliveries_for_expert(*, expert_id: str, limit: int = 200) -> List[Dict]:
    """
    Alerts received by `expert_id` as a searcher, newest first, with the seller's name.
    """
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT
          ad.id AS delivery_id,
          ad.seller_id,
          e.name AS seller_name,
          ad.book_id,
          ad.book_title,
          ad.book_author,
          ad.status,
          ad.created_at,
          ad.sent_at,
          ad.error
        FROM alert_deliveries ad
        LEFT JOIN experts e ON e.id = ad.seller_id
        WHERE ad.searcher_id = ?
        ORDER BY ad.created_at DESC, ad.id DESC
        LIMIT ?
        """,
        (expert_id, int(limit)),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_recent_alert_deliveries(limit: int = 100, status: Optional[str] = None) -> List[Dict]:
    """Admin view across all experts, optionally only `sent` or `failed`."""
    sql = """
        SELECT
          ad.id AS delivery_id,
          ad.searcher_id,
          s.email AS searcher_email,
          ad.seller_id,
          ad.book_title,
          ad.book_author,
          ad.status,
          ad.created_at,
          ad.error
        FROM alert_deliveries ad
        LEFT JOIN experts s ON s.id = ad.searcher_id
    """
    params: list = []
    if status:
        sql += " WHERE ad.status = ?"
        params.append(status)
    sql += " ORDER BY ad.created_at DESC, ad.id DESC LIMIT ?"
    params.append(int(limit))

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(sql, params)
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


__all__ = [
    "record_alert_delivery",
    "get_alert_deliveries_for_expert",
    "get_recent_alert_deliveries",
]

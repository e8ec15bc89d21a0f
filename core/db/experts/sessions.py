"""
Session storage helpers.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from core.db.base import get_conn

SESSION_TIMEOUT_MINUTES = 30  # inactivity timeout


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session(expert_id: str) -> str:
    """Create a new login session for the given expert and return the session token."""
    token = secrets.token_urlsafe(32)
    now = _now()
    expires = now + timedelta(minutes=SESSION_TIMEOUT_MINUTES)

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO sessions (id, expert_id, created_at, last_seen_at, expires_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (token, expert_id, now, now, expires),
    )
    conn.commit()
    conn.close()

    return token


def delete_session(session_id: str) -> None:
    """Remove a session from the DB (logout)."""
    if not session_id:
        return

    conn = get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
    conn.commit()
    conn.close()


def get_session(session_id: str) -> Optional[Dict]:
    """
    Look up a session by id.
    - Returns None if it does not exist or has expired.
    - If expired, it is removed from the DB.
    """
    if not session_id:
        return None

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, expert_id, created_at, last_seen_at, expires_at
        FROM sessions
        WHERE id = ?
        """,
        (session_id,),
    )
    row = cur.fetchone()
    conn.close()

    if not row:
        return None

    if row["expires_at"] < _now():
        delete_session(session_id)
        return None

    return dict(row)


def touch_session(session_id: str) -> None:
    """Extend a session's expiry based on current time (sliding window)."""
    if not session_id:
        return

    now = _now()
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE sessions
        SET last_seen_at = ?, expires_at = ?
        WHERE id = ?
        """,
        (now, now + timedelta(minutes=SESSION_TIMEOUT_MINUTES), session_id),
    )
    conn.commit()
    conn.close()


__all__ = [
    "SESSION_TIMEOUT_MINUTES",
    "create_session",
    "delete_session",
    "get_session",
    "touch_session",
]

"""
Expert CRUD. Books, spotlights, the want and the present offer live inside the expert
row as JSONB, so replacing any of them is a single-row update.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from core.db.base import get_conn
from core.db.experts.auth import hash_password
from core.errors import DuplicateEmailError, ExpertNotFoundError, PersistenceError
from core.models import Expert

log = logging.getLogger(__name__)

_COLUMNS = (
    "id, name, email, role, status, subscription_tier, genre, country, bio, avatar_url, "
    "on_leave, books, spotlights, book_query, social_links, present_offer, created_at, updated_at"
)

_SCALAR_FIELDS = {
    "name",
    "email",
    "role",
    "status",
    "subscription_tier",
    "genre",
    "country",
    "bio",
    "avatar_url",
    "on_leave",
}
_JSON_FIELDS = {"books", "spotlights", "book_query", "social_links", "present_offer"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _to_db(field: str, value: Any) -> Any:
    if field in _JSON_FIELDS:
        if value is None:
            return None
        if isinstance(value, list):
            return Jsonb([v.model_dump(mode="json") if hasattr(v, "model_dump") else v for v in value])
        if hasattr(value, "model_dump"):
            return Jsonb(value.model_dump(mode="json"))
        return Jsonb(value)
    if field == "email":
        return _normalize_email(value)
    if hasattr(value, "value"):
        return value.value
    return value


def _row_to_expert(row: Dict) -> Expert:
    data = dict(row)
    data["books"] = data.get("books") or []
    data["spotlights"] = data.get("spotlights") or []
    data["on_leave"] = bool(data.get("on_leave"))
    data["is_example"] = False
    return Expert.model_validate(data)


def list_experts() -> List[Expert]:
    """All stored experts, newest first."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM experts ORDER BY created_at DESC, id DESC")
    rows = cur.fetchall()
    conn.close()
    return [_row_to_expert(r) for r in rows]


def get_expert_by_id(expert_id: str) -> Optional[Expert]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM experts WHERE id = ?", (expert_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_expert(row) if row else None


def get_expert_by_email(email: str) -> Optional[Expert]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM experts WHERE email = ?", (_normalize_email(email),))
    row = cur.fetchone()
    conn.close()
    return _row_to_expert(row) if row else None


def get_credentials_by_email(email: str) -> Dict | None:
    """Return {id, password_hash, status} for login checks."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "SELECT id, password_hash, status FROM experts WHERE email = ?",
        (_normalize_email(email),),
    )
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def create_expert(data: Dict[str, Any], raw_password: str) -> Expert:
    """
    Insert a new expert. Raises DuplicateEmailError if the email exists (case-insensitive).
    """
    email = _normalize_email(data.get("email", ""))
    expert_id = data.get("id") or f"db-{uuid.uuid4()}"
    now = _now()

    fields = {k: v for k, v in data.items() if k in _SCALAR_FIELDS or k in _JSON_FIELDS}
    fields["email"] = email
    columns = ["id", "password_hash", "created_at"] + list(fields)
    values = [expert_id, hash_password(raw_password), now] + [_to_db(k, v) for k, v in fields.items()]
    placeholders = ", ".join("?" for _ in columns)

    conn = get_conn()
    cur = conn.cursor()
    try:
        cur.execute("SELECT 1 FROM experts WHERE email = ?", (email,))
        if cur.fetchone():
            raise DuplicateEmailError(email)
        cur.execute(
            f"INSERT INTO experts ({', '.join(columns)}) VALUES ({placeholders}) RETURNING {_COLUMNS}",
            values,
        )
        row = cur.fetchone()
        conn.commit()
    except psycopg.errors.UniqueViolation:
        conn.rollback()
        raise DuplicateEmailError(email) from None
    except psycopg.Error as exc:
        conn.rollback()
        log.error("Failed to create expert", extra={"email": email, "error": str(exc)})
        raise PersistenceError("Could not create the profile. Please try again.") from exc
    finally:
        conn.close()

    return _row_to_expert(row)


def update_expert(expert_id: str, changes: Dict[str, Any]) -> Expert:
    """
    Apply a partial update and return the stored expert.
    Unknown keys are ignored; JSON fields are replaced wholesale.
    """
    fields = {k: v for k, v in changes.items() if k in _SCALAR_FIELDS or k in _JSON_FIELDS}
    assignments = [f"{k} = ?" for k in fields] + ["updated_at = ?"]
    values = [_to_db(k, v) for k, v in fields.items()] + [_now(), expert_id]

    conn = get_conn()
    cur = conn.cursor()
    try:
        cur.execute(
            f"UPDATE experts SET {', '.join(assignments)} WHERE id = ? RETURNING {_COLUMNS}",
            values,
        )
        row = cur.fetchone()
        if not row:
            conn.rollback()
            raise ExpertNotFoundError(expert_id)
        conn.commit()
    except psycopg.errors.UniqueViolation:
        conn.rollback()
        raise DuplicateEmailError(_normalize_email(changes.get("email", ""))) from None
    except psycopg.Error as exc:
        conn.rollback()
        log.error("Failed to update expert", extra={"expert_id": expert_id, "error": str(exc)})
        raise PersistenceError("Failed to save changes. Please try again.") from exc
    finally:
        conn.close()

    return _row_to_expert(row)


def delete_experts(expert_ids: Iterable[str]) -> int:
    """
    Archive and remove experts with their sessions and alert history.
    Returns the number of experts removed.
    """
    ids = [i for i in expert_ids if i]
    if not ids:
        return 0

    now = _now()
    conn = get_conn()
    cur = conn.cursor()
    removed = 0
    try:
        for expert_id in ids:
            cur.execute(
                """
                INSERT INTO deleted_experts (expert_id, email, name, role, subscription_tier, created_at, deleted_at)
                SELECT id, email, name, role, subscription_tier, created_at, ?
                FROM experts WHERE id = ?
                """,
                (now, expert_id),
            )
            cur.execute(
                "DELETE FROM alert_deliveries WHERE searcher_id = ? OR seller_id = ?",
                (expert_id, expert_id),
            )
            cur.execute("DELETE FROM sessions WHERE expert_id = ?", (expert_id,))
            cur.execute("DELETE FROM experts WHERE id = ?", (expert_id,))
            removed += cur.rowcount or 0
        conn.commit()
    except psycopg.Error as exc:
        conn.rollback()
        log.error("Failed to delete experts", extra={"ids": ids, "error": str(exc)})
        raise PersistenceError("An error occurred while deleting users.") from exc
    finally:
        conn.close()
    return removed


def get_deleted_experts(limit: int = 100) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, expert_id, email, name, role, subscription_tier, created_at, deleted_at
        FROM deleted_experts
        ORDER BY deleted_at DESC, id DESC
        LIMIT ?
        """,
        (int(limit),),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


__all__ = [
    "list_experts",
    "get_expert_by_id",
    "get_expert_by_email",
    "get_credentials_by_email",
    "create_expert",
    "update_expert",
    "delete_experts",
    "get_deleted_experts",
]

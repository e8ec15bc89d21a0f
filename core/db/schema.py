"""
Schema and bootstrap helpers for Postgres.
"""
from __future__ import annotations

import logging
import os

from core.db.base import get_conn
from core.db.experts import create_expert, get_expert_by_email, hash_password
from core.models import BookGenre, SubscriptionTier, UserRole

log = logging.getLogger(__name__)


def init_db() -> None:
    """Create the experts, sessions, alert_deliveries and deleted_experts tables if they don't exist."""
    conn = get_conn()
    cur = conn.cursor()

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS experts(
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT,
            role TEXT NOT NULL DEFAULT 'expert',
            status TEXT NOT NULL DEFAULT 'active',
            subscription_tier TEXT NOT NULL DEFAULT 'free',
            genre TEXT NOT NULL,
            country TEXT,
            bio TEXT NOT NULL DEFAULT '',
            avatar_url TEXT,
            on_leave BOOLEAN NOT NULL DEFAULT FALSE,
            books JSONB NOT NULL DEFAULT '[]'::jsonb,
            spotlights JSONB NOT NULL DEFAULT '[]'::jsonb,
            book_query JSONB,
            social_links JSONB,
            present_offer JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS sessions(
            id TEXT PRIMARY KEY,
            expert_id TEXT NOT NULL REFERENCES experts(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL,
            last_seen_at TIMESTAMPTZ NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS alert_deliveries(
            id SERIAL PRIMARY KEY,
            searcher_id TEXT NOT NULL,
            seller_id TEXT NOT NULL,
            book_id TEXT NOT NULL,
            book_title TEXT NOT NULL,
            book_author TEXT NOT NULL,
            status TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL,
            sent_at TIMESTAMPTZ,
            error TEXT
        )
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS alert_deliveries_searcher_idx ON alert_deliveries (searcher_id, created_at DESC)"
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS deleted_experts(
            id SERIAL PRIMARY KEY,
            expert_id TEXT NOT NULL,
            email TEXT NOT NULL,
            name TEXT,
            role TEXT NOT NULL,
            subscription_tier TEXT,
            created_at TIMESTAMPTZ,
            deleted_at TIMESTAMPTZ NOT NULL
        )
        """
    )

    conn.commit()
    conn.close()

    ensure_admin_from_env()


def ensure_admin_from_env() -> None:
    """
    Optionally seed/update an admin account from environment variables.
    Set ADMIN_EMAIL and ADMIN_PASSWORD before startup to use.
    """
    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")

    if not admin_email or not admin_password:
        return

    existing = get_expert_by_email(admin_email)

    if existing:
        conn = get_conn()
        cur = conn.cursor()
        cur.execute(
            "UPDATE experts SET role = ?, password_hash = ? WHERE id = ?",
            (UserRole.ADMIN.value, hash_password(admin_password), existing.id),
        )
        conn.commit()
        conn.close()
        return

    create_expert(
        {
            "name": "Admin",
            "email": admin_email,
            "role": UserRole.ADMIN,
            "subscription_tier": SubscriptionTier.PREMIUM,
            "genre": BookGenre.AI,
            "bio": "Administrator of BookDocker GO2.",
        },
        admin_password,
    )
    log.info("Seeded admin account", extra={"email": admin_email})


__all__ = [
    "init_db",
    "ensure_admin_from_env",
]

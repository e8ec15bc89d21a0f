"""
Postgres connection helpers.

Store modules write SQL with `?` placeholders; the cursor wrapper rewrites them to
psycopg's `%s` before execution. Rows come back as dicts.
"""
from __future__ import annotations

import os
from typing import Any, Iterable, Optional

import psycopg
from psycopg.rows import dict_row

_URL_SCHEMES = ("postgres://", "postgresql://")


def resolve_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL must be set to a Postgres connection URL")
    if not url.startswith(_URL_SCHEMES):
        raise RuntimeError("DATABASE_URL must start with postgres:// or postgresql://")
    return url


def to_pyformat(sql: str) -> str:
    """`?` -> `%s`; literal percent signs are doubled so psycopg leaves them alone."""
    return sql.replace("%", "%%").replace("?", "%s")


class Cursor:
    def __init__(self, cursor: psycopg.Cursor):
        self._cursor = cursor

    def execute(self, sql: str, params: Optional[Iterable[Any]] = None):
        if params is None:
            return self._cursor.execute(sql)
        return self._cursor.execute(to_pyformat(sql), list(params))

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    def __iter__(self):
        return iter(self._cursor)

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount or 0


class Connection:
    def __init__(self, conn: psycopg.Connection):
        self._conn = conn

    def cursor(self) -> Cursor:
        return Cursor(self._conn.cursor())

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def get_conn() -> Connection:
    """Open a new connection. DATABASE_URL is read on every call."""
    return Connection(psycopg.connect(resolve_database_url(), row_factory=dict_row))

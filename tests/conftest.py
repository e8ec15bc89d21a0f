import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app import security
from core import directory as directory_module
from core.directory import ExpertDirectory
from core.errors import DuplicateEmailError, ExpertNotFoundError
from core.models import Book, BookGenre, BookQuery, BookStatus, Expert, SubscriptionTier


class FakeStore:
    """In-memory stand-in for core.db.experts.expert_store."""

    def __init__(self, experts=()):
        self.experts = {e.id: e for e in experts}
        self.list_calls = 0
        self.update_calls = []
        self.fail_updates = False

    def list_experts(self):
        self.list_calls += 1
        return list(self.experts.values())

    def get_expert_by_id(self, expert_id):
        return self.experts.get(expert_id)

    def create_expert(self, data, raw_password):
        email = data["email"].lower()
        if any(e.email.lower() == email for e in self.experts.values()):
            raise DuplicateEmailError(email)
        expert = Expert(id=f"db-{uuid.uuid4()}", **{**data, "email": email})
        self.experts[expert.id] = expert
        return expert

    def update_expert(self, expert_id, changes):
        self.update_calls.append((expert_id, changes))
        if self.fail_updates:
            raise ConnectionError("database is down")
        if expert_id not in self.experts:
            raise ExpertNotFoundError(expert_id)
        updated = self.experts[expert_id].model_copy(update=changes)
        self.experts[expert_id] = updated
        return updated

    def delete_experts(self, expert_ids):
        removed = 0
        for expert_id in expert_ids:
            if self.experts.pop(expert_id, None) is not None:
                removed += 1
        return removed


_counter = {"n": 0}


def make_expert(
    name="Expert",
    tier=SubscriptionTier.FREE,
    want=None,
    books=(),
    genre=BookGenre.HISTORY,
    **kwargs,
) -> Expert:
    _counter["n"] += 1
    n = _counter["n"]
    return Expert(
        id=kwargs.pop("id", f"db-test-{n}"),
        name=name,
        email=kwargs.pop("email", f"{name.lower().replace(' ', '.')}.{n}@example.com"),
        subscription_tier=tier,
        genre=genre,
        book_query=BookQuery(title=want[0], author=want[1]) if want else None,
        books=list(books),
        created_at=kwargs.pop("created_at", datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=n)),
        **kwargs,
    )


def make_book(title="Dune", author="Frank Herbert", year=1965, status=BookStatus.AVAILABLE, **kwargs) -> Book:
    _counter["n"] += 1
    return Book(
        id=kwargs.pop("id", f"book-test-{_counter['n']}"),
        title=title,
        author=author,
        year=year,
        status=status,
        **kwargs,
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def directory(store):
    return ExpertDirectory(store=store, include_examples=False)


@pytest.fixture
def app_directory(monkeypatch, store):
    """Install an in-memory directory (with the demo experts) for route tests."""
    d = ExpertDirectory(store=store, include_examples=True)
    monkeypatch.setattr(directory_module, "_directory", d)
    return d


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    security.reset_rate_limits()
    yield
    security.reset_rate_limits()


@pytest.fixture
def db():
    """Postgres-backed tests only run when DATABASE_URL is set."""
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL must be set for Postgres-only tests.")

    from core.db.base import get_conn
    from core.db.schema import init_db

    tables = ["alert_deliveries", "sessions", "deleted_experts", "experts"]

    def _truncate_all():
        conn = get_conn()
        cur = conn.cursor()
        cur.execute("TRUNCATE " + ", ".join(tables) + " RESTART IDENTITY CASCADE")
        conn.commit()
        conn.close()

    init_db()
    _truncate_all()
    yield
    _truncate_all()

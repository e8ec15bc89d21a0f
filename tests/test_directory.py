import threading

import pytest
from conftest import FakeStore, make_expert

from core import directory as directory_module
from core.directory import ExpertDirectory
from core.errors import ExpertNotFoundError, PersistenceError
from core.models import utcnow


class Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_snapshot_merges_examples_newest_first():
    real = make_expert("Real")
    d = ExpertDirectory(store=FakeStore([real]), include_examples=True)

    experts = d.snapshot(0).experts

    assert real in experts
    assert d.snapshot(0).get("premium-user-1") is not None
    created = [e.created_at for e in experts]
    assert created == sorted(created, reverse=True)


def test_snapshot_max_age_zero_always_refetches():
    store = FakeStore([make_expert("Real")])
    d = ExpertDirectory(store=store, include_examples=False)
    d.snapshot(0)
    d.snapshot(0)
    assert store.list_calls == 2


def test_snapshot_reused_within_max_age():
    store = FakeStore([make_expert("Real")])
    clock = Clock()
    d = ExpertDirectory(store=store, include_examples=False, clock=clock)

    first = d.snapshot(30)
    clock.now += 10
    assert d.snapshot(30) is first
    clock.now += 30
    assert d.snapshot(30) is not first
    assert store.list_calls == 2


def test_save_invalidates_cached_snapshot():
    e = make_expert("Real")
    store = FakeStore([e])
    d = ExpertDirectory(store=store, include_examples=False, clock=Clock())

    d.snapshot(60)
    d.save(e.id, {"bio": "changed"})
    assert d.snapshot(60).get(e.id).bio == "changed"
    assert store.list_calls == 2


def test_save_wraps_storage_errors():
    e = make_expert("Real")
    store = FakeStore([e])
    store.fail_updates = True
    d = ExpertDirectory(store=store, include_examples=False)

    with pytest.raises(PersistenceError):
        d.save(e.id, {"bio": "changed"})


def test_require_missing_expert():
    d = ExpertDirectory(store=FakeStore(), include_examples=False)
    with pytest.raises(ExpertNotFoundError):
        d.require("db-nope")
    assert d.is_example("premium-user-1") is False


def test_example_edit_happens_under_the_lock(monkeypatch):
    d = ExpertDirectory(store=FakeStore(), include_examples=True)
    held = []

    def fake_utcnow():
        held.append(d._lock.locked())
        return utcnow()

    monkeypatch.setattr(directory_module, "utcnow", fake_utcnow)
    d.snapshot(60)

    d.save("premium-user-2", {"bio": "Edited"})

    assert held == [True]
    assert d.snapshot(60).get("premium-user-2").bio == "Edited"


def test_concurrent_example_edits_keep_every_field():
    d = ExpertDirectory(store=FakeStore(), include_examples=True)
    fields = {"bio": "New bio", "country": "Japan", "avatar_url": "https://example.com/a.png", "name": "Renamed"}
    barrier = threading.Barrier(len(fields))

    def edit(field, value):
        barrier.wait()
        d.save("premium-user-3", {field: value})

    threads = [threading.Thread(target=edit, args=item) for item in fields.items()]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    saved = d.get("premium-user-3")
    assert {k: getattr(saved, k) for k in fields} == fields

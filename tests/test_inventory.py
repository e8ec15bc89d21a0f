import pytest
from conftest import FakeStore, make_book, make_expert

from core.directory import ExpertDirectory
from core.errors import InvalidIsbnError, LimitExceededError, PersistenceError, ValidationError
from core.hive import save_books
from core.models import BookStatus, SubscriptionTier


def _dune(status="Available", **extra):
    return {"title": "Dune", "author": "Frank Herbert", "year": "1965", "status": status, **extra}


def _setup(*experts, include_examples=False):
    store = FakeStore(experts)
    return store, ExpertDirectory(store=store, include_examples=include_examples)


def test_premium_want_gets_one_alert_for_matching_book():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob")
    store, directory = _setup(a, b)
    sent = []

    result = save_books(b.id, [_dune()], sender=sent.append, directory=directory)

    assert result.delivered == 1 and result.failed == 0
    assert len(sent) == 1
    assert sent[0].to == a.email
    assert sent[0].template_data["seller_name"] == "Bob"
    assert sent[0].template_data["book_title"] == "Dune"
    assert [bk.title for bk in store.experts[b.id].books] == ["Dune"]


def test_reserved_book_sends_nothing():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob")
    _, directory = _setup(a, b)
    sent = []

    result = save_books(b.id, [_dune(status="Reserved")], sender=sent.append, directory=directory)

    assert sent == []
    assert result.notifications == []
    assert result.expert.books[0].status == BookStatus.RESERVED


def test_free_searcher_gets_nothing():
    a = make_expert("Alice", want=("Dune", "Herbert"))
    b = make_expert("Bob")
    _, directory = _setup(a, b)
    sent = []

    save_books(b.id, [_dune()], sender=sent.append, directory=directory)

    assert sent == []


def test_two_matching_books_in_one_save_send_two_alerts():
    a = make_expert("Alice")
    b = make_expert("Bob", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    _, directory = _setup(a, b)
    sent = []

    rows = [_dune(), {"title": "Dune Messiah", "author": "Frank Herbert", "year": 1969}]
    result = save_books(a.id, rows, sender=sent.append, directory=directory)

    assert result.delivered == 2
    assert [n.to for n in sent] == [b.email, b.email]
    assert {n.template_data["book_title"] for n in sent} == {"Dune", "Dune Messiah"}


def test_seller_is_never_alerted_about_own_book():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    _, directory = _setup(a)
    sent = []

    save_books(a.id, [_dune()], sender=sent.append, directory=directory)

    assert sent == []


def test_resaving_existing_books_sends_nothing():
    existing = make_book(title="Dune", author="Frank Herbert")
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob", books=[existing])
    store, directory = _setup(a, b)
    sent = []

    result = save_books(b.id, list(store.experts[b.id].books), sender=sent.append, directory=directory)

    assert sent == []
    assert result.expert.books[0].id == existing.id
    assert result.expert.books[0].added_at == existing.added_at


def test_limit_is_checked_before_anything_is_written():
    b = make_expert("Bob")
    store, directory = _setup(b)
    rows = [{"title": f"Book {i}", "author": "Someone", "year": 2000} for i in range(36)]

    with pytest.raises(LimitExceededError):
        save_books(b.id, rows, sender=lambda n: None, directory=directory)

    assert store.update_calls == []


def test_premium_limit_allows_more_books():
    b = make_expert("Bob", tier=SubscriptionTier.PREMIUM)
    _, directory = _setup(b)
    rows = [{"title": f"Book {i}", "author": "Someone", "year": 2000} for i in range(36)]

    result = save_books(b.id, rows, sender=lambda n: None, directory=directory)

    assert len(result.expert.books) == 36


def test_bad_isbn_aborts_save():
    b = make_expert("Bob")
    store, directory = _setup(b)

    with pytest.raises(InvalidIsbnError):
        save_books(b.id, [_dune(isbn="12-34")], sender=lambda n: None, directory=directory)

    assert store.update_calls == []


def test_persistence_failure_sends_no_alerts():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob")
    store, directory = _setup(a, b)
    store.fail_updates = True
    sent = []

    with pytest.raises(PersistenceError):
        save_books(b.id, [_dune()], sender=sent.append, directory=directory)

    assert sent == []
    assert store.experts[b.id].books == []


def test_sender_failure_keeps_the_save():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob")
    store, directory = _setup(a, b)
    recorded = []

    def broken_sender(notification):
        raise RuntimeError("SMTP down")

    result = save_books(
        b.id,
        [_dune()],
        sender=broken_sender,
        recorder=lambda **kw: recorded.append(kw),
        directory=directory,
    )

    assert result.delivered == 0 and result.failed == 1
    assert len(store.experts[b.id].books) == 1
    assert recorded[0]["status"] == "failed"


def test_one_snapshot_per_save():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob")
    store, directory = _setup(a, b)

    save_books(b.id, [_dune(), {"title": "Dune Messiah", "author": "Herbert", "year": 1969}],
               sender=lambda n: None, directory=directory)

    assert store.list_calls == 1


def test_no_snapshot_when_nothing_new():
    b = make_expert("Bob")
    store, directory = _setup(b)

    save_books(b.id, [], sender=lambda n: None, directory=directory)

    assert store.list_calls == 0


def test_example_expert_edits_stay_in_memory():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("The Histories", "Herodotus"))
    store, directory = _setup(a, include_examples=True)
    seller = directory.require("premium-user-3")
    sent = []

    rows = list(seller.books) + [{"title": "The Histories", "author": "Herodotus", "year": 1996}]
    result = save_books(seller.id, rows, sender=sent.append, directory=directory)

    assert store.update_calls == []
    assert len(directory.require(seller.id).books) == len(seller.books) + 1
    # sold / reserved demo books keep their status through the round trip
    assert [b.status for b in result.expert.books[: len(seller.books)]] == [b.status for b in seller.books]
    # demo sellers still alert real premium searchers
    assert [n.to for n in sent] == [a.email]


def test_repeated_book_id_is_rejected_before_anything_is_stored():
    a = make_expert("Alice", tier=SubscriptionTier.PREMIUM, want=("Dune", "Herbert"))
    b = make_expert("Bob")
    store, directory = _setup(a, b)
    sent = []

    with pytest.raises(ValidationError):
        save_books(b.id, [_dune(id="book-x"), _dune(id="book-x")], sender=sent.append, directory=directory)

    assert sent == []
    assert store.update_calls == []
    assert store.experts[b.id].books == []

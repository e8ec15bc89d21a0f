import pytest
from conftest import make_book

from core.database import (
    create_expert,
    create_session,
    delete_experts,
    delete_session,
    get_alert_deliveries_for_expert,
    get_credentials_by_email,
    get_deleted_experts,
    get_expert_by_email,
    get_expert_by_id,
    get_recent_alert_deliveries,
    get_session,
    list_experts,
    record_alert_delivery,
    touch_session,
    update_expert,
    verify_password,
)
from core.errors import DuplicateEmailError, ExpertNotFoundError
from core.models import BookGenre, BookQuery, SubscriptionTier


def _new_expert(email="reader@example.com", name="Reader"):
    return create_expert({"name": name, "email": email, "genre": BookGenre.HISTORY}, "Passw0rd1")


def test_create_and_read_back(db):
    expert = _new_expert(email="Reader@Example.com")

    assert expert.id.startswith("db-")
    assert expert.email == "reader@example.com"
    assert expert.subscription_tier == SubscriptionTier.FREE
    assert get_expert_by_id(expert.id).name == "Reader"
    assert get_expert_by_email("READER@example.com").id == expert.id
    assert [e.id for e in list_experts()] == [expert.id]


def test_duplicate_email_is_rejected(db):
    _new_expert()
    with pytest.raises(DuplicateEmailError):
        _new_expert(email="READER@example.com", name="Someone else")


def test_password_is_hashed(db):
    _new_expert()
    creds = get_credentials_by_email("reader@example.com")
    assert creds["password_hash"] != "Passw0rd1"
    assert verify_password("Passw0rd1", creds["password_hash"])
    assert not verify_password("wrong", creds["password_hash"])


def test_update_replaces_books_and_want(db):
    expert = _new_expert()
    book = make_book(title="Dune")

    updated = update_expert(
        expert.id,
        {"books": [book], "book_query": BookQuery(title="Emma", author="Austen"), "ignored": 1},
    )

    assert [b.title for b in updated.books] == ["Dune"]
    assert updated.books[0].id == book.id
    assert updated.book_query.title == "Emma"
    assert get_expert_by_id(expert.id).books[0].status == book.status


def test_update_unknown_expert(db):
    with pytest.raises(ExpertNotFoundError):
        update_expert("db-missing", {"name": "Nobody"})


def test_sessions(db):
    expert = _new_expert()
    token = create_session(expert.id)

    session = get_session(token)
    assert session["expert_id"] == expert.id
    touch_session(token)
    assert get_session(token)["expires_at"] >= session["expires_at"]

    delete_session(token)
    assert get_session(token) is None


def test_alert_history(db):
    searcher = _new_expert()
    seller = _new_expert(email="seller@example.com", name="Seller")
    book = make_book(title="Dune")

    record_alert_delivery(searcher_id=searcher.id, seller_id=seller.id, book=book, status="sent")
    record_alert_delivery(
        searcher_id=searcher.id, seller_id="premium-user-1", book=book, status="failed", error="SMTP down"
    )

    mine = get_alert_deliveries_for_expert(expert_id=searcher.id)
    assert [d["status"] for d in mine] == ["failed", "sent"]
    assert mine[1]["seller_name"] == "Seller"
    assert mine[0]["seller_name"] is None

    failed = get_recent_alert_deliveries(status="failed")
    assert len(failed) == 1
    assert failed[0]["error"] == "SMTP down"
    assert failed[0]["searcher_email"] == "reader@example.com"


def test_delete_archives_and_clears_history(db):
    expert = _new_expert()
    other = _new_expert(email="other@example.com", name="Other")
    create_session(expert.id)
    record_alert_delivery(searcher_id=expert.id, seller_id=other.id, book=make_book(), status="sent")

    assert delete_experts([expert.id, "db-missing"]) == 1

    assert get_expert_by_id(expert.id) is None
    assert get_alert_deliveries_for_expert(expert_id=expert.id) == []
    archived = get_deleted_experts()
    assert [d["expert_id"] for d in archived] == [expert.id]
    assert archived[0]["email"] == "reader@example.com"

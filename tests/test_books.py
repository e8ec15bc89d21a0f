from datetime import datetime, timedelta, timezone

import pytest
from conftest import make_book

from core.books import normalize_books, search_books, sort_books, validate_isbn
from core.errors import InvalidIsbnError, ValidationError
from core.models import BookStatus


@pytest.mark.parametrize("isbn", ["", "   ", None])
def test_isbn_optional(isbn):
    assert validate_isbn(isbn) is None


@pytest.mark.parametrize("isbn", ["0-306-40615-2", "9780306406157", "978-0-306-40615-7"])
def test_isbn_valid(isbn):
    assert validate_isbn(isbn) == isbn


@pytest.mark.parametrize("isbn", ["12345", "97803064061X7", "ISBN 9780306406157", "12345678901"])
def test_isbn_invalid(isbn):
    with pytest.raises(InvalidIsbnError):
        validate_isbn(isbn)


def test_normalize_drops_incomplete_rows_and_assigns_ids():
    now = datetime(2025, 5, 1, tzinfo=timezone.utc)
    rows = [
        {"title": "Dune", "author": "Frank Herbert", "year": "1965"},
        {"title": "", "author": "", "year": ""},
        {"title": "No author", "author": " ", "year": "2000"},
    ]
    books = normalize_books(rows, now=now)

    assert len(books) == 1
    assert books[0].id.startswith("book-")
    assert books[0].status == BookStatus.AVAILABLE
    assert books[0].added_at == now


def test_normalize_keeps_existing_ids_and_added_at():
    old = make_book(title="Dune", added_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
    rows = [{"id": old.id, "title": "Dune (revised)", "author": "Frank Herbert", "year": 1965, "status": "Sold"}]

    books = normalize_books(rows, previous=[old], now=datetime(2025, 1, 1, tzinfo=timezone.utc))

    assert books[0].id == old.id
    assert books[0].added_at == old.added_at
    assert books[0].title == "Dune (revised)"
    assert books[0].status == BookStatus.SOLD


def test_normalize_parses_optional_fields():
    rows = [{
        "title": "Dune", "author": "Herbert", "year": "1965",
        "price": "12.50", "currency": "USD", "condition": "Good", "isbn": "0-306-40615-2",
    }]
    book = normalize_books(rows)[0]
    assert book.price == 12.5
    assert book.currency == "USD"
    assert book.condition == "Good"
    assert book.isbn == "0-306-40615-2"


@pytest.mark.parametrize(
    "row",
    [
        {"title": "Dune", "author": "Herbert", "year": "nineteen"},
        {"title": "Dune", "author": "Herbert", "year": "1965", "price": "cheap"},
        {"title": "Dune", "author": "Herbert", "year": "1965", "price": "-1"},
        {"title": "Dune", "author": "Herbert", "year": "1965", "status": "Lost"},
    ],
)
def test_normalize_rejects_bad_values(row):
    with pytest.raises(ValidationError):
        normalize_books([row])


def test_search_books_title_or_author():
    books = [make_book(title="Dune", author="Frank Herbert"), make_book(title="Emma", author="Jane Austen")]
    assert [b.title for b in search_books(books, "austen")] == ["Emma"]
    assert [b.title for b in search_books(books, "DUNE")] == ["Dune"]
    assert len(search_books(books, "")) == 2


def test_sort_books_default_newest_first_with_pinned_book():
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    old = make_book(title="Old", added_at=base)
    mid = make_book(title="Mid", added_at=base + timedelta(days=1))
    new = make_book(title="New", added_at=base + timedelta(days=2))

    assert [b.title for b in sort_books([old, mid, new])] == ["New", "Mid", "Old"]
    assert [b.title for b in sort_books([old, mid, new], pinned_book_id=old.id)] == ["Old", "New", "Mid"]


def test_sort_books_by_other_keys():
    a = make_book(title="alpha", author="Zed", year=2001)
    b = make_book(title="Beta", author="amy", year=1999)

    assert [x.title for x in sort_books([b, a], "title", "asc")] == ["alpha", "Beta"]
    assert [x.title for x in sort_books([a, b], "author", "asc")] == ["Beta", "alpha"]
    assert [x.title for x in sort_books([a, b], "year", "asc")] == ["Beta", "alpha"]
    # unknown keys fall back to added_at
    assert len(sort_books([a, b], "price")) == 2


def test_normalize_rejects_repeated_ids():
    row = {"id": "book-x", "title": "Dune", "author": "Frank Herbert", "year": "1965"}
    with pytest.raises(ValidationError):
        normalize_books([row, dict(row)])


def test_normalize_blank_ids_never_collide():
    rows = [{"title": "Dune", "author": "Frank Herbert", "year": "1965"}] * 2
    books = normalize_books(rows)
    assert len({b.id for b in books}) == 2

"""
Book inventory helpers: ISBN validation, normalising a submitted replacement list,
search and sorting for profile pages.
"""
from __future__ import annotations

import re
import secrets
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from core.errors import InvalidIsbnError, ValidationError
from core.models import Book, BookStatus, utcnow

SORT_KEYS = ("title", "author", "year", "added_at")


def validate_isbn(isbn: str | None) -> Optional[str]:
    """Return the ISBN as entered (trimmed) or None; raise InvalidIsbnError when malformed."""
    if not isbn or not isbn.strip():
        return None
    sanitized = isbn.replace("-", "").strip()
    if not re.fullmatch(r"\d+", sanitized):
        raise InvalidIsbnError("ISBN can only contain digits and hyphens.")
    if len(sanitized) not in (10, 13):
        raise InvalidIsbnError("Valid ISBN must be 10 or 13 digits.")
    return isbn.strip()


def new_book_id() -> str:
    return f"book-{secrets.token_hex(6)}"


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_int(value, field: str) -> Optional[int]:
    value = _clean(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{field} must be a whole number.") from None


def _parse_price(value) -> Optional[float]:
    value = _clean(value)
    if value is None:
        return None
    try:
        price = float(value)
    except ValueError:
        raise ValidationError("Price must be a number.") from None
    if price < 0:
        raise ValidationError("Price cannot be negative.")
    return price or None


def normalize_books(
    rows: Iterable[Dict],
    previous: Iterable[Book] = (),
    now: datetime | None = None,
) -> List[Book]:
    """
    Turn the owner's submitted rows into the full replacement book list.

    - Rows without title, author or year are dropped (blank form lines).
    - Existing ids keep their original `added_at`; rows without an id get a new one.
    - Any malformed ISBN or a repeated book id aborts the whole save.
    """
    now = now or utcnow()
    previous_by_id = {b.id: b for b in previous}
    books: List[Book] = []
    seen_ids = set()

    for row in rows:
        title = _clean(row.get("title"))
        author = _clean(row.get("author"))
        year = _parse_int(row.get("year"), "Year")
        if not (title and author and year):
            continue

        isbn = validate_isbn(row.get("isbn"))
        book_id = _clean(row.get("id")) or new_book_id()
        if book_id in seen_ids:
            raise ValidationError("The same book appears more than once in the list.")
        seen_ids.add(book_id)
        existing = previous_by_id.get(book_id)
        status = row.get("status")
        if not isinstance(status, BookStatus):
            status = _clean(status) or BookStatus.AVAILABLE.value
        try:
            status = BookStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown book status: {status}") from None

        books.append(
            Book(
                id=book_id,
                title=title,
                author=author,
                year=year,
                status=status,
                added_at=existing.added_at if existing else now,
                price=_parse_price(row.get("price")),
                currency=_clean(row.get("currency")),
                image_url=_clean(row.get("image_url")),
                condition=_clean(row.get("condition")),
                isbn=isbn,
            )
        )

    return books


def search_books(books: Iterable[Book], query: str | None) -> List[Book]:
    query = (query or "").strip().lower()
    if not query:
        return list(books)
    return [b for b in books if query in (b.title or "").lower() or query in (b.author or "").lower()]


def sort_books(
    books: Iterable[Book],
    key: str = "added_at",
    direction: str = "desc",
    pinned_book_id: str | None = None,
) -> List[Book]:
    """Sort for display; the present-offer book (if any) is always shown first."""
    if key not in SORT_KEYS:
        key = "added_at"
    reverse = direction != "asc"

    if key == "year":
        sort_key = lambda b: b.year or 0
    elif key == "added_at":
        sort_key = lambda b: b.added_at
    else:
        sort_key = lambda b: (getattr(b, key) or "").lower()

    ordered = sorted(books, key=sort_key, reverse=reverse)
    if pinned_book_id:
        pinned = [b for b in ordered if b.id == pinned_book_id]
        ordered = pinned + [b for b in ordered if b.id != pinned_book_id]
    return ordered


__all__ = [
    "SORT_KEYS",
    "validate_isbn",
    "new_book_id",
    "normalize_books",
    "search_books",
    "sort_books",
]

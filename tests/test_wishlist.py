import json

import pytest
from fastapi.responses import Response
from fastapi.testclient import TestClient
from starlette.requests import Request

import app.api as api_module
from app.routes.wishlist import (
    WISHLIST_COOKIE_NAME,
    WISHLIST_MAX_ITEMS,
    add_item,
    read_wishlist,
    remove_item,
    write_wishlist,
)
from core.models import WishlistItem

CSRF = "csrf-test-token"


def _request_with_cookie(value: str) -> Request:
    header = f"{WISHLIST_COOKIE_NAME}={value}".encode("latin-1")
    return Request({"type": "http", "headers": [(b"cookie", header)]})


def test_read_wishlist_parses_cookie():
    raw = json.dumps([{"book_id": "book-p1-1", "expert_id": "premium-user-1"}], separators=(",", ":"))
    assert read_wishlist(_request_with_cookie(raw)) == [
        WishlistItem(book_id="book-p1-1", expert_id="premium-user-1")
    ]


@pytest.mark.parametrize("raw", ["not-json", "{}", '[{"book_id":"x"}]'])
def test_unreadable_cookie_is_empty(raw):
    assert read_wishlist(_request_with_cookie(raw)) == []


def test_missing_cookie_is_empty():
    assert read_wishlist(Request({"type": "http", "headers": []})) == []


def test_add_item_is_idempotent():
    items = add_item([], "b1", "e1")
    items = add_item(items, "b1", "e1")
    assert items == [WishlistItem(book_id="b1", expert_id="e1")]


def test_remove_item_only_removes_matching_pair():
    items = [WishlistItem(book_id="b1", expert_id="e1"), WishlistItem(book_id="b1", expert_id="e2")]
    assert remove_item(items, "b1", "e1") == [WishlistItem(book_id="b1", expert_id="e2")]


def test_write_wishlist_caps_items():
    items = [WishlistItem(book_id=f"b{i}", expert_id="e1") for i in range(WISHLIST_MAX_ITEMS + 5)]
    resp = Response()
    write_wishlist(resp, items)
    header = resp.headers["set-cookie"]
    assert header.startswith(f"{WISHLIST_COOKIE_NAME}=")
    assert "httponly" in header.lower()
    assert f"b{WISHLIST_MAX_ITEMS - 1}" in header
    assert f"b{WISHLIST_MAX_ITEMS}\\" not in header


@pytest.fixture
def client(app_directory):
    c = TestClient(api_module.app)
    c.cookies.set("csrf_token", CSRF)
    return c


def test_add_and_remove_through_routes(client):
    resp = client.post(
        "/wishlist/add",
        data={"book_id": "book-p1-2", "expert_id": "premium-user-1", "csrf_token": CSRF},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/experts/premium-user-1"

    page = client.get("/wishlist")
    assert "Foundation" in page.text

    resp = client.post(
        "/wishlist/remove",
        data={"book_id": "book-p1-2", "expert_id": "premium-user-1", "csrf_token": CSRF},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert "Foundation" not in client.get("/wishlist").text


def test_add_unknown_book_is_404(client):
    resp = client.post(
        "/wishlist/add",
        data={"book_id": "book-nope", "expert_id": "premium-user-1", "csrf_token": CSRF},
    )
    assert resp.status_code == 404


def test_add_requires_csrf(client):
    resp = client.post("/wishlist/add", data={"book_id": "book-p1-2", "expert_id": "premium-user-1"})
    assert resp.status_code == 403


def test_empty_wishlist_page(client):
    resp = client.get("/wishlist")
    assert resp.status_code == 200
    assert "Your wishlist is empty." in resp.text

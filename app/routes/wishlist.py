"""
Wishlist: books a visitor wants to remember, kept in a browser cookie only.
"""
import json
import logging
from typing import List

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError as PydanticValidationError

from app.auth_utils import get_current_user
from app.layout import esc, render_page
from app.security import SECURE_COOKIES, attach_csrf_cookie, csrf_field, issue_csrf_token, validate_csrf
from core.directory import get_directory
from core.models import WishlistItem

log = logging.getLogger(__name__)

router = APIRouter()

WISHLIST_COOKIE_NAME = "wishlist"
WISHLIST_MAX_ITEMS = 50
WISHLIST_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def read_wishlist(request: Request) -> List[WishlistItem]:
    """Parse the cookie; anything unreadable counts as an empty wishlist."""
    raw = request.cookies.get(WISHLIST_COOKIE_NAME)
    if not raw:
        return []
    try:
        data = json.loads(raw)
        return [WishlistItem.model_validate(item) for item in data][:WISHLIST_MAX_ITEMS]
    except (ValueError, TypeError, PydanticValidationError):
        log.info("Discarding unreadable wishlist cookie")
        return []


def write_wishlist(response, items: List[WishlistItem]) -> None:
    payload = json.dumps([item.model_dump() for item in items[:WISHLIST_MAX_ITEMS]], separators=(",", ":"))
    response.set_cookie(
        key=WISHLIST_COOKIE_NAME,
        value=payload,
        max_age=WISHLIST_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=SECURE_COOKIES,
    )


def add_item(items: List[WishlistItem], book_id: str, expert_id: str) -> List[WishlistItem]:
    if any(i.book_id == book_id and i.expert_id == expert_id for i in items):
        return list(items)
    return list(items) + [WishlistItem(book_id=book_id, expert_id=expert_id)]


def remove_item(items: List[WishlistItem], book_id: str, expert_id: str) -> List[WishlistItem]:
    return [i for i in items if not (i.book_id == book_id and i.expert_id == expert_id)]


@router.get("/wishlist", response_class=HTMLResponse)
def wishlist(request: Request):
    user, _ = get_current_user(request)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))
    directory = get_directory()

    rows = ""
    for item in read_wishlist(request):
        expert = directory.get(item.expert_id)
        book = expert.book_by_id(item.book_id) if expert else None
        if book is None:
            # The book was removed by its owner since it was saved.
            continue
        rows += f"""
        <tr>
          <td>{esc(book.title)}</td>
          <td>{esc(book.author)}</td>
          <td>{esc(book.status.value)}</td>
          <td><a href="/experts/{esc(expert.id)}">{esc(expert.name)}</a></td>
          <td>
            <form method="post" action="/wishlist/remove" style="margin:0;">
              <input type="hidden" name="book_id" value="{esc(book.id)}" />
              <input type="hidden" name="expert_id" value="{esc(expert.id)}" />
              {csrf_field(csrf_token)}
              <button type="submit" class="secondary" style="margin:0;padding:0.2rem 0.6rem;">Remove</button>
            </form>
          </td>
        </tr>
        """

    if not rows:
        rows = '<tr><td colspan="5">Your wishlist is empty. Browse the experts and add books you like.</td></tr>'

    body = f"""
    <div class="card">
      <p class="muted">Your wishlist is stored in this browser only.</p>
      <table>
        <thead>
          <tr><th>Title</th><th>Author</th><th>Status</th><th>Expert</th><th></th></tr>
        </thead>
        <tbody>{rows}</tbody>
      </table>
    </div>
    """
    resp = render_page("My Wishlist", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/wishlist/add")
def wishlist_add(
    request: Request,
    book_id: str = Form(...),
    expert_id: str = Form(...),
    csrf_token: str = Form(""),
):
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    expert = get_directory().get(expert_id)
    if expert is None or expert.book_by_id(book_id) is None:
        return HTMLResponse("Book not found.", status_code=404)

    items = add_item(read_wishlist(request), book_id, expert_id)
    resp = RedirectResponse(url=f"/experts/{expert_id}", status_code=303)
    write_wishlist(resp, items)
    return resp


@router.post("/wishlist/remove")
def wishlist_remove(
    request: Request,
    book_id: str = Form(...),
    expert_id: str = Form(...),
    csrf_token: str = Form(""),
):
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    items = remove_item(read_wishlist(request), book_id, expert_id)
    resp = RedirectResponse(url="/wishlist", status_code=303)
    write_wishlist(resp, items)
    return resp

import logging
from typing import List

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.auth_utils import get_current_user, login_redirect
from app.layout import esc, render_page
from app.notifications import send_notification
from app.routes.public import _country_options, _genre_options
from app.security import allow_action, attach_csrf_cookie, csrf_field, issue_csrf_token, validate_csrf
from core.ai_agent import generate_bio
from core.database import record_alert_delivery
from core.entitlements import Feature, is_feature_enabled, limits
from core.hive import save_books
from core.models import BookStatus, Expert
from core.profiles import update_profile

log = logging.getLogger(__name__)

router = APIRouter()

BLANK_BOOK_ROWS = 3

_SAVED_MESSAGES = {
    "profile": "Profile saved.",
    "bio": "A new bio was generated. Feel free to edit it below.",
}


def _notice(saved: str, alerts: int) -> str:
    if saved == "books":
        text = "Books saved."
        if alerts:
            text += f" {alerts} Title Hive alert(s) sent to experts searching for your new books."
        return f'<div class="card notice">{esc(text)}</div>'
    if saved in _SAVED_MESSAGES:
        return f'<div class="card notice">{esc(_SAVED_MESSAGES[saved])}</div>'
    return ""


def _status_options(selected: BookStatus) -> str:
    return "".join(
        f'<option value="{s.value}"{" selected" if s == selected else ""}>{s.value}</option>' for s in BookStatus
    )


def _book_row(book=None) -> str:
    b = book
    remove = (
        f'<input type="checkbox" name="remove_ids" value="{esc(b.id)}" />' if b else ""
    )
    return f"""
    <tr>
      <td>
        <input type="hidden" name="book_id" value="{esc(b.id) if b else ''}" />
        <input type="text" name="title" value="{esc(b.title) if b else ''}" maxlength="200" />
      </td>
      <td><input type="text" name="author" value="{esc(b.author) if b else ''}" maxlength="200" /></td>
      <td><input type="number" name="year" value="{b.year if b else ''}" /></td>
      <td><select name="status">{_status_options(b.status if b else BookStatus.AVAILABLE)}</select></td>
      <td><input type="text" name="price" value="{b.price if b and b.price else ''}" /></td>
      <td><input type="text" name="currency" value="{esc(b.currency) if b and b.currency else 'USD'}" maxlength="3" /></td>
      <td><input type="text" name="condition" value="{esc(b.condition) if b and b.condition else ''}" maxlength="100" /></td>
      <td><input type="text" name="isbn" value="{esc(b.isbn) if b and b.isbn else ''}" maxlength="17" /></td>
      <td><input type="text" name="image_url" value="{esc(b.image_url) if b and b.image_url else ''}" /></td>
      <td>{remove}</td>
    </tr>
    """


def _books_form(expert: Expert, csrf_token: str) -> str:
    tier_limits = limits(expert.subscription_tier)
    rows = "".join(_book_row(b) for b in expert.books)
    rows += "".join(_book_row() for _ in range(BLANK_BOOK_ROWS))
    return f"""
    <div class="card">
      <h3>My books ({len(expert.books)} / {tier_limits.max_books})</h3>
      <p class="muted">Fill in a blank row to add a book. Tick "Remove" to delete one.
        New available books are matched against premium experts' Title Hive searches.</p>
      <form method="post" action="/books">
        <table>
          <thead>
            <tr><th>Title</th><th>Author</th><th>Year</th><th>Status</th><th>Price</th><th>Cur.</th>
              <th>Condition</th><th>ISBN</th><th>Image URL</th><th>Remove</th></tr>
          </thead>
          <tbody>{rows}</tbody>
        </table>
        {csrf_field(csrf_token)}
        <button type="submit">Save books</button>
      </form>
    </div>
    """


def _spotlight_rows(expert: Expert) -> str:
    max_spotlights = limits(expert.subscription_tier).max_spotlights
    spotlights = list(expert.spotlights)
    book_options = lambda selected: '<option value="">No featured book</option>' + "".join(
        f'<option value="{esc(b.id)}"{" selected" if b.id == selected else ""}>{esc(b.title)}</option>'
        for b in expert.books
    )
    html_rows = ""
    for i in range(max(max_spotlights, len(spotlights))):
        s = spotlights[i] if i < len(spotlights) else None
        html_rows += f"""
        <fieldset class="card">
          <legend>Spotlight {i + 1}</legend>
          <input type="hidden" name="spotlight_id" value="{esc(s.id) if s else ''}" />
          <input type="hidden" name="spotlight_audio" value="{esc(s.audio_url) if s and s.audio_url else ''}" />
          <label>Title</label>
          <input type="text" name="spotlight_title" maxlength="150" value="{esc(s.title) if s else ''}" />
          <label>Featured book</label>
          <select name="spotlight_book">{book_options(s.featured_book_id if s else None)}</select>
          <label>Content (max 350 characters)</label>
          <textarea name="spotlight_content" rows="4" maxlength="350">{esc(s.content) if s else ''}</textarea>
        </fieldset>
        """
    return html_rows


def _premium_fields(expert: Expert) -> str:
    if not (
        is_feature_enabled(expert.subscription_tier, Feature.AWAY_STATUS)
        or is_feature_enabled(expert.subscription_tier, Feature.SPECIAL_OFFERS)
    ):
        return '<p class="muted">Away status and special offers are premium features. <a href="/premium">Go Premium</a></p>'
    offer = expert.present_offer
    gift_options = '<option value="">No offer</option>' + "".join(
        f'<option value="{esc(b.id)}"{" selected" if offer and offer.book_id == b.id else ""}>{esc(b.title)}</option>'
        for b in expert.books
        if b.status == BookStatus.AVAILABLE
    )
    return f"""
    <label><input type="checkbox" name="on_leave" value="1"{" checked" if expert.on_leave else ""} /> I'm on leave</label>
    <h4>Special offer</h4>
    <label>Gift book</label>
    <select name="offer_book_id">{gift_options}</select>
    <label>Books to purchase</label>
    <input type="number" name="offer_books_required" min="1" value="{offer.books_required if offer else ''}" />
    <label>Message</label>
    <input type="text" name="offer_message" maxlength="150" value="{esc(offer.message) if offer and offer.message else ''}" />
    """


def _profile_form(expert: Expert, csrf_token: str) -> str:
    links = expert.social_links.model_dump() if expert.social_links else {}
    want = expert.book_query
    want_note = (
        "Premium experts get an email as soon as a matching book is listed."
        if is_feature_enabled(expert.subscription_tier, Feature.WANT_REGISTRATION)
        else "Your search is shown on your profile. Go Premium to appear in the Title Hive and get alerts."
    )
    social_inputs = "".join(
        f'<label>{name.title()}</label><input type="url" name="social_{name}" value="{esc(links.get(name) or "")}" />'
        for name in ("x", "facebook", "linkedin", "instagram", "youtube")
    )
    return f"""
    <div class="card form-card">
      <h3>Profile</h3>
      <form method="post" action="/profile/bio">
        {csrf_field(csrf_token)}
        <button type="submit" class="secondary">Generate bio with AI</button>
      </form>
      <form method="post" action="/profile">
        <label>Name</label>
        <input type="text" name="name" required maxlength="100" value="{esc(expert.name)}" />
        <label>Email</label>
        <input type="email" name="email" required maxlength="254" value="{esc(expert.email)}" />
        <label>Genre</label>
        <select name="genre" required>{_genre_options(expert.genre.value, blank=None)}</select>
        <label>Country</label>
        <select name="country">{_country_options(expert.country)}</select>
        <label>Bio</label>
        <textarea name="bio" rows="5" maxlength="1000">{esc(expert.bio)}</textarea>
        <label>Avatar URL</label>
        <input type="url" name="avatar_url" value="{esc(expert.avatar_url or '')}" />
        <h4>Social links</h4>
        {social_inputs}
        <h4>Book I'm searching for</h4>
        <p class="muted">{want_note} Title and author are both required.</p>
        <label>Title</label>
        <input type="text" name="want_title" maxlength="200" value="{esc(want.title) if want else ''}" />
        <label>Author</label>
        <input type="text" name="want_author" maxlength="200" value="{esc(want.author) if want else ''}" />
        <label>Publisher</label>
        <input type="text" name="want_publisher" maxlength="200" value="{esc(want.publisher) if want and want.publisher else ''}" />
        <label>Edition</label>
        <input type="text" name="want_edition" maxlength="100" value="{esc(want.edition) if want and want.edition else ''}" />
        <label>Year</label>
        <input type="number" name="want_year" value="{want.year if want and want.year else ''}" />
        <h4>Spotlights ({len(expert.spotlights)} / {limits(expert.subscription_tier).max_spotlights})</h4>
        {_spotlight_rows(expert)}
        {_premium_fields(expert)}
        {csrf_field(csrf_token)}
        <button type="submit">Save profile</button>
      </form>
    </div>
    """


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, saved: str = "", alerts: int = 0):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()

    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))
    body = f"""
    {_notice(saved, alerts)}
    <div class="stats">
      <div class="stat"><div class="label">Plan</div><div class="value">{'Premium' if user.is_premium else 'Free'}</div></div>
      <div class="stat"><div class="label">Books</div><div class="value">{len(user.books)}</div></div>
      <div class="stat"><div class="label">Spotlights</div><div class="value">{len(user.spotlights)}</div></div>
    </div>
    <p><a href="/experts/{esc(user.id)}">View my public profile</a></p>
    {_books_form(user, csrf_token)}
    {_profile_form(user, csrf_token)}
    <div class="card form-card">
      <h3>Invite a friend</h3>
      <form method="post" action="/invite">
        <label>Friend's email</label>
        <input type="email" name="friend_email" required maxlength="254" />
        <label>Personal message (optional)</label>
        <input type="text" name="message" maxlength="500" />
        {csrf_field(csrf_token)}
        <button type="submit">Send invite</button>
      </form>
    </div>
    """
    resp = render_page("My dashboard", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/books")
def save_my_books(
    request: Request,
    book_id: List[str] = Form([]),
    title: List[str] = Form([]),
    author: List[str] = Form([]),
    year: List[str] = Form([]),
    status: List[str] = Form([]),
    price: List[str] = Form([]),
    currency: List[str] = Form([]),
    condition: List[str] = Form([]),
    isbn: List[str] = Form([]),
    image_url: List[str] = Form([]),
    remove_ids: List[str] = Form([]),
    csrf_token: str = Form(""),
):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    def col(values: List[str], i: int) -> str:
        return values[i] if i < len(values) else ""

    removed = set(remove_ids)
    rows = []
    for i in range(len(title)):
        row_id = col(book_id, i)
        if row_id and row_id in removed:
            continue
        rows.append(
            {
                "id": row_id,
                "title": col(title, i),
                "author": col(author, i),
                "year": col(year, i),
                "status": col(status, i),
                "price": col(price, i),
                "currency": col(currency, i),
                "condition": col(condition, i),
                "isbn": col(isbn, i),
                "image_url": col(image_url, i),
            }
        )

    result = save_books(user.id, rows, sender=send_notification, recorder=record_alert_delivery)
    if result.failed:
        log.warning(
            "Some Title Hive alerts failed",
            extra={"expert_id": user.id, "failed": result.failed},
        )
    return RedirectResponse(url=f"/dashboard?saved=books&alerts={result.delivered}", status_code=303)


@router.post("/profile")
def save_profile(
    request: Request,
    name: str = Form(..., max_length=100),
    email: str = Form(..., max_length=254),
    genre: str = Form(...),
    country: str = Form(""),
    bio: str = Form("", max_length=1000),
    avatar_url: str = Form(""),
    social_x: str = Form(""),
    social_facebook: str = Form(""),
    social_linkedin: str = Form(""),
    social_instagram: str = Form(""),
    social_youtube: str = Form(""),
    want_title: str = Form(""),
    want_author: str = Form(""),
    want_publisher: str = Form(""),
    want_edition: str = Form(""),
    want_year: str = Form(""),
    spotlight_id: List[str] = Form([]),
    spotlight_title: List[str] = Form([]),
    spotlight_content: List[str] = Form([]),
    spotlight_book: List[str] = Form([]),
    spotlight_audio: List[str] = Form([]),
    on_leave: str = Form(""),
    offer_book_id: str = Form(""),
    offer_books_required: str = Form(""),
    offer_message: str = Form(""),
    csrf_token: str = Form(""),
):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    def col(values: List[str], i: int) -> str:
        return values[i] if i < len(values) else ""

    spotlights = [
        {
            "id": col(spotlight_id, i),
            "title": col(spotlight_title, i),
            "content": col(spotlight_content, i),
            "featured_book_id": col(spotlight_book, i),
            "audio_url": col(spotlight_audio, i),
        }
        for i in range(len(spotlight_title))
    ]
    changes = {
        "name": name,
        "email": email,
        "genre": genre,
        "country": country,
        "bio": bio,
        "avatar_url": avatar_url,
        "social_links": {
            "x": social_x,
            "facebook": social_facebook,
            "linkedin": social_linkedin,
            "instagram": social_instagram,
            "youtube": social_youtube,
        },
        "book_query": {
            "title": want_title,
            "author": want_author,
            "publisher": want_publisher,
            "edition": want_edition,
            "year": want_year,
        },
        "spotlights": spotlights,
    }
    if is_feature_enabled(user.subscription_tier, Feature.AWAY_STATUS):
        changes["on_leave"] = bool(on_leave)
    if is_feature_enabled(user.subscription_tier, Feature.SPECIAL_OFFERS):
        changes["present_offer"] = {
            "book_id": offer_book_id,
            "books_required": offer_books_required,
            "message": offer_message,
        }
    update_profile(user.id, changes)
    return RedirectResponse(url="/dashboard?saved=profile", status_code=303)


@router.post("/profile/bio")
def generate_profile_bio(request: Request, csrf_token: str = Form("")):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    allowed, _ = allow_action("ai", request)
    if not allowed:
        return HTMLResponse("Too many AI requests. Please try again later.", status_code=429)

    bio = generate_bio(user.name, user.genre.value)
    update_profile(user.id, {"bio": bio})
    return RedirectResponse(url="/dashboard?saved=bio", status_code=303)

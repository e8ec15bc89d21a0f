import logging
import re

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.auth_utils import get_current_user, set_session_cookie
from app.layout import esc, pager_html, render_page
from app.notifications import (
    contact_notification,
    feedback_notification,
    inquiry_notification,
    invite_notification,
    send_notification,
)
from app.security import (
    allow_action,
    attach_csrf_cookie,
    csrf_field,
    issue_csrf_token,
    validate_csrf,
)
from core.books import search_books, sort_books
from core.constants import COUNTRIES
from core.database import create_session
from core.directory import get_directory
from core.entitlements import Feature, is_feature_enabled
from core.errors import ValidationError
from core.listing import (
    BOOKS_PER_PAGE,
    BUZZ_PER_PAGE,
    EXPERTS_PER_PAGE,
    filter_experts,
    paginate,
    title_hive,
)
from core.models import BookGenre, Expert
from core.profiles import create_profile

log = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_MAX = 2000


def _is_valid_email(email: str) -> bool:
    email = (email or "").strip()
    if not email or len(email) > 254:
        return False
    return bool(re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email))


# Basic rule: 8-64 chars, at least one letter and one number
def _is_valid_password(pw: str) -> bool:
    pw = pw or ""
    if len(pw) < 8 or len(pw) > 64:
        return False
    return bool(re.search(r"[A-Za-z]", pw) and re.search(r"\d", pw))


def _genre_options(selected: str | None = None, blank: str | None = "All genres") -> str:
    options = [f'<option value="">{blank}</option>'] if blank is not None else []
    for g in BookGenre:
        sel = " selected" if selected == g.value else ""
        options.append(f'<option value="{esc(g.value)}"{sel}>{esc(g.value)}</option>')
    return "".join(options)


def _country_options(selected: str | None = None) -> str:
    options = ['<option value="">Select a country</option>']
    for c in COUNTRIES:
        sel = " selected" if selected == c else ""
        options.append(f'<option value="{esc(c)}"{sel}>{esc(c)}</option>')
    return "".join(options)


def _expert_card(expert: Expert, query: str = "") -> str:
    badges = []
    if expert.is_premium:
        badges.append('<span class="badge">Premium</span>')
    if expert.on_leave and is_feature_enabled(expert.subscription_tier, Feature.AWAY_STATUS):
        badges.append('<span class="badge">On leave</span>')
    if expert.present_offer and is_feature_enabled(expert.subscription_tier, Feature.SPECIAL_OFFERS):
        badges.append('<span class="badge">Special offer</span>')

    want_html = ""
    if expert.book_query:
        want_html = (
            f'<p class="muted">Searching for: <strong>{esc(expert.book_query.title)}</strong> '
            f"by {esc(expert.book_query.author)}</p>"
        )

    matches_html = ""
    if query:
        hits = search_books(expert.books, query)
        if hits:
            items = "".join(f"<li>{esc(b.title)} <span class='muted'>by {esc(b.author)}</span></li>" for b in hits[:5])
            matches_html = f"<ul>{items}</ul>"

    return f"""
    <div class="card">
      <h3><a href="/experts/{esc(expert.id)}">{esc(expert.name)}</a> {' '.join(badges)}</h3>
      <p class="muted">{esc(expert.genre.value)}{' &middot; ' + esc(expert.country) if expert.country else ''}
        &middot; {len(expert.books)} books</p>
      {want_html}
      {matches_html}
    </div>
    """


@router.get("/", response_class=HTMLResponse)
def index(request: Request, q: str = "", genre: str = "", page: int = 1):
    user, _ = get_current_user(request)
    experts = filter_experts(get_directory().list(), query=q, genre=genre)
    current = paginate(experts, page, EXPERTS_PER_PAGE)

    cards = "".join(_expert_card(e, q) for e in current.items)
    if not cards:
        cards = '<div class="card"><p class="muted">No experts match your search.</p></div>'

    body = f"""
    <div class="card">
      <form method="get" action="/">
        <label>Search experts, books and authors</label>
        <input type="text" name="q" value="{esc(q)}" maxlength="100" />
        <label>Genre</label>
        <select name="genre">{_genre_options(genre)}</select>
        <button type="submit">Search</button>
      </form>
    </div>
    <p class="muted">{current.total} experts</p>
    <div class="grid">{cards}</div>
    {pager_html("/", current, {"q": q, "genre": genre})}
    """
    return render_page("Experts", body, user=user)


def _books_table(expert: Expert, books, csrf_token: str) -> str:
    offer_book_id = None
    if expert.present_offer and is_feature_enabled(expert.subscription_tier, Feature.SPECIAL_OFFERS):
        offer_book_id = expert.present_offer.book_id

    rows = ""
    for b in books:
        gift = " (Gift book)" if b.id == offer_book_id else ""
        price = f"{b.price:.2f} {esc(b.currency or '')}" if b.price else ""
        wishlist_form = ""
        if b.is_available:
            wishlist_form = f"""
            <form method="post" action="/wishlist/add" style="margin:0;">
              <input type="hidden" name="book_id" value="{esc(b.id)}" />
              <input type="hidden" name="expert_id" value="{esc(expert.id)}" />
              {csrf_field(csrf_token)}
              <button type="submit" class="secondary" style="margin:0;padding:0.2rem 0.6rem;">Wishlist</button>
            </form>
            """
        rows += f"""
        <tr>
          <td>{esc(b.title)}{gift}</td>
          <td>{esc(b.author)}</td>
          <td>{b.year}</td>
          <td>{esc(b.status.value)}</td>
          <td>{price}</td>
          <td>{esc(b.condition or '')}</td>
          <td>{esc(b.isbn or '')}</td>
          <td>{wishlist_form}</td>
        </tr>
        """
    if not rows:
        rows = '<tr><td colspan="8">No books listed.</td></tr>'
    return f"""
    <table>
      <thead>
        <tr><th>Title</th><th>Author</th><th>Year</th><th>Status</th><th>Price</th><th>Condition</th><th>ISBN</th><th></th></tr>
      </thead>
      <tbody>{rows}</tbody>
    </table>
    """


@router.get("/experts/{expert_id}", response_class=HTMLResponse)
def expert_profile(
    request: Request,
    expert_id: str,
    q: str = "",
    sort: str = "added_at",
    order: str = "desc",
    page: int = 1,
):
    user, _ = get_current_user(request)
    expert = get_directory().require(expert_id)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))

    offer_on = bool(expert.present_offer) and is_feature_enabled(expert.subscription_tier, Feature.SPECIAL_OFFERS)
    pinned = expert.present_offer.book_id if offer_on else None
    books = sort_books(search_books(expert.books, q), key=sort, direction=order, pinned_book_id=pinned)
    current = paginate(books, page, BOOKS_PER_PAGE)

    notices = ""
    if expert.on_leave and is_feature_enabled(expert.subscription_tier, Feature.AWAY_STATUS):
        notices += '<div class="card notice">This expert is currently on leave and may be slow to respond.</div>'
    if offer_on and expert.book_by_id(expert.present_offer.book_id):
        offer = expert.present_offer
        notices += f"""
        <div class="card notice">
          Special Offer: Buy {offer.books_required} or more books from my Book Collection listing within the
          same order, and you will receive the Gift Book marked below.
          {f"<p>{esc(offer.message)}</p>" if offer.message else ""}
        </div>
        """

    social_html = ""
    if expert.social_links and not expert.social_links.is_empty():
        links = [
            f'<a href="{esc(url)}" rel="noopener" target="_blank">{name}</a>'
            for name, url in expert.social_links.model_dump().items()
            if url
        ]
        social_html = f"<p>{' &middot; '.join(links)}</p>"

    spotlights_html = ""
    for s in expert.spotlights:
        featured = expert.book_by_id(s.featured_book_id) if s.featured_book_id else None
        spotlights_html += f"""
        <div class="card">
          <h3>{esc(s.title)}</h3>
          {f'<p class="muted">Featuring {esc(featured.title)}</p>' if featured else ''}
          <p>{esc(s.content)}</p>
          {f'<audio controls src="{esc(s.audio_url)}"></audio>' if s.audio_url else ''}
        </div>
        """

    want_html = ""
    if expert.book_query:
        w = expert.book_query
        extra = " &middot; ".join(esc(v) for v in (w.publisher, w.edition, w.year) if v)
        want_html = f"""
        <div class="card">
          <h3>Searching for</h3>
          <p><strong>{esc(w.title)}</strong> by {esc(w.author)}</p>
          {f'<p class="muted">{extra}</p>' if extra else ''}
        </div>
        """

    book_options = "".join(f'<option value="{esc(b.id)}">{esc(b.title)}</option>' for b in expert.books if b.is_available)
    sort_options = "".join(
        f'<option value="{k}"{" selected" if k == sort else ""}>{k.replace("_", " ").title()}</option>'
        for k in ("added_at", "title", "author", "year")
    )

    body = f"""
    {notices}
    <div class="card">
      <h2>{esc(expert.name)} {'<span class="badge">Premium</span>' if expert.is_premium else ''}</h2>
      <p class="muted">{esc(expert.genre.value)}{' &middot; ' + esc(expert.country) if expert.country else ''}</p>
      <p>{esc(expert.bio)}</p>
      {social_html}
    </div>
    {spotlights_html}
    {want_html}
    <div class="card">
      <h3>Book collection</h3>
      <form method="get" action="/experts/{esc(expert.id)}">
        <input type="text" name="q" value="{esc(q)}" placeholder="Search title or author" />
        <select name="sort">{sort_options}</select>
        <select name="order">
          <option value="desc"{' selected' if order != 'asc' else ''}>Descending</option>
          <option value="asc"{' selected' if order == 'asc' else ''}>Ascending</option>
        </select>
        <button type="submit">Apply</button>
      </form>
      {_books_table(expert, current.items, csrf_token)}
      {pager_html(f"/experts/{expert.id}", current, {"q": q, "sort": sort, "order": order})}
    </div>
    <div class="card form-card">
      <h3>Ask about a book</h3>
      <form method="post" action="/experts/{esc(expert.id)}/inquiry">
        <label>Book</label>
        <select name="book_id" required>{book_options}</select>
        <label>Your email</label>
        <input type="email" name="sender_email" required maxlength="254" />
        <label>Message</label>
        <textarea name="message" rows="4" required maxlength="{MESSAGE_MAX}"></textarea>
        {csrf_field(csrf_token)}
        <button type="submit">Send inquiry</button>
      </form>
    </div>
    <div class="card form-card">
      <h3>Contact {esc(expert.name)}</h3>
      <form method="post" action="/experts/{esc(expert.id)}/contact">
        <label>Your email</label>
        <input type="email" name="sender_email" required maxlength="254" />
        <label>Message</label>
        <textarea name="message" rows="4" required maxlength="{MESSAGE_MAX}"></textarea>
        <label>Links (optional)</label>
        <input type="text" name="links" maxlength="500" />
        {csrf_field(csrf_token)}
        <button type="submit">Send message</button>
      </form>
    </div>
    """
    resp = render_page(expert.name, body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.get("/title-hive", response_class=HTMLResponse)
def title_hive_page(request: Request, q: str = "", page: int = 1):
    user, _ = get_current_user(request)
    buzzing = title_hive(get_directory().list(), q)
    current = paginate(buzzing, page, BUZZ_PER_PAGE)

    cards = ""
    for e in current.items:
        w = e.book_query
        extra = " &middot; ".join(esc(v) for v in (w.publisher, w.edition, w.year) if v)
        cards += f"""
        <div class="card">
          <p><strong>{esc(w.title)}</strong></p>
          <p class="muted">by {esc(w.author)}</p>
          {f'<p class="muted">{extra}</p>' if extra else ''}
          <p>Wanted by <a href="/experts/{esc(e.id)}">{esc(e.name)}</a></p>
        </div>
        """
    if not cards:
        cards = '<div class="card"><p class="muted">No buzzes match your search.</p></div>'

    body = f"""
    <div class="card">
      <p class="muted">Books our premium experts are hunting for. Have one? Get in touch with them.</p>
      <form method="get" action="/title-hive">
        <input type="text" name="q" value="{esc(q)}" placeholder="Search by title or author" />
        <button type="submit">Search</button>
      </form>
    </div>
    <div class="grid">{cards}</div>
    {pager_html("/title-hive", current, {"q": q})}
    """
    return render_page("Title Hive", body, user=user)


def _signup_form(csrf_token: str, error: str = "", values: dict | None = None) -> str:
    v = values or {}
    error_html = f'<p class="error">{esc(error)}</p>' if error else ""
    return f"""
    <div class="card form-card">
      <p class="muted">Create your expert profile. New profiles start on the free plan.</p>
      {error_html}
      <form method="post" action="/signup">
        <label>Name</label>
        <input type="text" name="name" required maxlength="100" value="{esc(v.get('name'))}" />
        <label>Email</label>
        <input type="email" name="email" required maxlength="254" value="{esc(v.get('email'))}" />
        <label>Password (8+ characters, letters and numbers)</label>
        <input type="password" name="password" required maxlength="64" />
        <label>Genre</label>
        <select name="genre" required>{_genre_options(v.get('genre'), blank='Select a genre')}</select>
        <label>Country</label>
        <select name="country">{_country_options(v.get('country'))}</select>
        <label>Bio</label>
        <textarea name="bio" rows="4" maxlength="1000">{esc(v.get('bio'))}</textarea>
        {csrf_field(csrf_token)}
        <button type="submit">Create profile</button>
      </form>
    </div>
    """


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request):
    user, _ = get_current_user(request)
    if user:
        return RedirectResponse(url="/dashboard", status_code=303)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))
    resp = render_page("Join as an expert", _signup_form(csrf_token), user=None)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/signup", response_class=HTMLResponse)
def signup(
    request: Request,
    name: str = Form(..., max_length=100),
    email: str = Form(..., max_length=254),
    password: str = Form(..., max_length=64),
    genre: str = Form(""),
    country: str = Form(""),
    bio: str = Form("", max_length=1000),
    csrf_token: str = Form(""),
):
    allowed, _ = allow_action("signup", request)
    if not allowed:
        return HTMLResponse("Too many sign-up attempts. Please try again later.", status_code=429)
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    values = {"name": name, "email": email, "genre": genre, "country": country, "bio": bio}
    error = ""
    if not _is_valid_email(email):
        error = "Please enter a valid email address."
    elif not _is_valid_password(password):
        error = "Password must be 8-64 characters and contain at least one letter and one number."

    expert = None
    if not error:
        try:
            expert = create_profile(values, password)
        except ValidationError as exc:
            error = str(exc)

    if expert is None:
        body = _signup_form(request.cookies.get("csrf_token", ""), error, values)
        return render_page("Join as an expert", body, user=None, status_code=400)

    token = create_session(expert.id)
    response = RedirectResponse(url="/dashboard", status_code=303)
    set_session_cookie(response, token)
    return response


def _sent_page(message: str, back: str, user=None) -> HTMLResponse:
    body = f"""
    <div class="card form-card">
      <p class="notice">{esc(message)}</p>
      <p><a href="{esc(back)}">Back</a></p>
    </div>
    """
    return render_page("Message sent", body, user=user)


def _send_or_fail(notification, back: str, user=None) -> HTMLResponse:
    try:
        send_notification(notification)
    except Exception as exc:
        log.error(
            "Failed to send message",
            extra={"template_type": notification.template_type, "error": str(exc)},
        )
        body = f"""
        <div class="card form-card">
          <p class="error">We could not send your message right now. Please try again later.</p>
          <p><a href="{esc(back)}">Back</a></p>
        </div>
        """
        return render_page("Message not sent", body, user=user, status_code=502)
    return _sent_page("Your message has been sent.", back, user)


def _check_message_form(request: Request, csrf_token: str, sender_email: str, message: str):
    allowed, _ = allow_action("email", request)
    if not allowed:
        return HTMLResponse("Too many messages. Please try again later.", status_code=429)
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    if sender_email and not _is_valid_email(sender_email):
        raise ValidationError("Please enter a valid email address.")
    if not (message or "").strip():
        raise ValidationError("Please write a message.")
    return None


@router.post("/experts/{expert_id}/inquiry", response_class=HTMLResponse)
def book_inquiry(
    request: Request,
    expert_id: str,
    book_id: str = Form(...),
    sender_email: str = Form(..., max_length=254),
    message: str = Form(..., max_length=MESSAGE_MAX),
    csrf_token: str = Form(""),
):
    user, _ = get_current_user(request)
    rejected = _check_message_form(request, csrf_token, sender_email, message)
    if rejected:
        return rejected
    expert = get_directory().require(expert_id)
    book = expert.book_by_id(book_id)
    if book is None:
        raise ValidationError("That book is not in this expert's collection.")
    notification = inquiry_notification(expert, book, sender_email.strip(), message.strip())
    return _send_or_fail(notification, f"/experts/{expert.id}", user)


@router.post("/experts/{expert_id}/contact", response_class=HTMLResponse)
def contact_expert(
    request: Request,
    expert_id: str,
    sender_email: str = Form(..., max_length=254),
    message: str = Form(..., max_length=MESSAGE_MAX),
    links: str = Form("", max_length=500),
    csrf_token: str = Form(""),
):
    user, _ = get_current_user(request)
    rejected = _check_message_form(request, csrf_token, sender_email, message)
    if rejected:
        return rejected
    expert = get_directory().require(expert_id)
    notification = contact_notification(expert, sender_email.strip(), message.strip(), links.strip() or None)
    return _send_or_fail(notification, f"/experts/{expert.id}", user)


@router.get("/feedback", response_class=HTMLResponse)
def feedback_form(request: Request):
    user, _ = get_current_user(request)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))
    body = f"""
    <div class="card form-card">
      <p class="muted">Tell us what works and what doesn't.</p>
      <form method="post" action="/feedback">
        <label>Name (optional)</label>
        <input type="text" name="sender_name" maxlength="100" value="{esc(user.name) if user else ''}" />
        <label>Email (optional)</label>
        <input type="email" name="sender_email" maxlength="254" value="{esc(user.email) if user else ''}" />
        <label>Message</label>
        <textarea name="message" rows="5" required maxlength="{MESSAGE_MAX}"></textarea>
        {csrf_field(csrf_token)}
        <button type="submit">Send feedback</button>
      </form>
    </div>
    """
    resp = render_page("Feedback", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/feedback", response_class=HTMLResponse)
def send_feedback(
    request: Request,
    sender_name: str = Form("", max_length=100),
    sender_email: str = Form("", max_length=254),
    message: str = Form(..., max_length=MESSAGE_MAX),
    csrf_token: str = Form(""),
):
    user, _ = get_current_user(request)
    rejected = _check_message_form(request, csrf_token, sender_email, message)
    if rejected:
        return rejected
    try:
        notification = feedback_notification(sender_name.strip(), sender_email.strip(), message.strip())
    except RuntimeError as exc:
        log.error("Feedback inbox missing", extra={"error": str(exc)})
        return render_page("Feedback", '<div class="card"><p class="error">Feedback is not available right now.</p></div>', user=user, status_code=503)
    return _send_or_fail(notification, "/", user)


@router.post("/invite", response_class=HTMLResponse)
def invite_friend(
    request: Request,
    friend_email: str = Form(..., max_length=254),
    message: str = Form("", max_length=500),
    csrf_token: str = Form(""),
):
    user, _ = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=303)
    allowed, _ = allow_action("email", request)
    if not allowed:
        return HTMLResponse("Too many messages. Please try again later.", status_code=429)
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    if not _is_valid_email(friend_email):
        raise ValidationError("Please enter a valid email address for your friend.")
    notification = invite_notification(user.name, friend_email.strip(), message.strip() or None)
    return _send_or_fail(notification, "/dashboard", user)

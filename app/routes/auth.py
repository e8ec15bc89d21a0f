import html
import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.auth_utils import clear_session_cookie, get_current_user, set_session_cookie
from app.layout import render_page
from app.security import (
    allow_action,
    attach_csrf_cookie,
    csrf_field,
    issue_csrf_token,
    validate_csrf,
)
from core.database import create_session, delete_session, get_credentials_by_email, verify_password
from core.models import UserStatus

log = logging.getLogger(__name__)

router = APIRouter()


def _login_form(csrf_token: str, error: str = "", email: str = "", remaining: int | None = None) -> str:
    error_html = f'<p class="error">{html.escape(error)}</p>' if error else ""
    attempts_html = f"<p class='muted'>Attempts left: {remaining}</p>" if remaining is not None and error else ""
    safe_email = html.escape(email or "", quote=True)
    return f"""
    <div class="card form-card">
      <p class="muted">Log in to manage your profile, books and Title Hive search.</p>
      {error_html}
      {attempts_html}
      <form method="post" action="/login">
        <label>Email</label>
        <input type="email" name="email" required maxlength="254" value="{safe_email}" />
        <label>Password</label>
        <input type="password" name="password" required maxlength="64" />
        {csrf_field(csrf_token)}
        <button type="submit">Login</button>
      </form>
      <p class="muted" style="margin-top:0.5rem;"><a href="/signup">Create an expert profile</a></p>
    </div>
    """


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request):
    user, _ = get_current_user(request)
    if user:
        return RedirectResponse(url="/dashboard", status_code=303)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))
    resp = render_page("Login", _login_form(csrf_token), user=None)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/login", response_class=HTMLResponse)
def login(
    request: Request,
    email: str = Form(..., max_length=254),
    password: str = Form(..., max_length=64),
    csrf_token: str = Form(""),
):
    allowed, remaining = allow_action("login", request)
    if not allowed:
        return HTMLResponse("Too many login attempts. Please try again later.", status_code=429)

    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    csrf_cookie = request.cookies.get("csrf_token", "")
    creds = get_credentials_by_email(email)

    # Same message for unknown email and wrong password
    if not creds or not verify_password(password, creds.get("password_hash")):
        body = _login_form(csrf_cookie, "Incorrect email or password.", email, remaining)
        return render_page("Login", body, user=None, status_code=401)

    if creds.get("status") == UserStatus.DISABLED.value:
        body = _login_form(csrf_cookie, "This account has been disabled. Please contact support.", email)
        return render_page("Login", body, user=None, status_code=403)

    token = create_session(creds["id"])
    log.info("Expert logged in", extra={"expert_id": creds["id"]})
    response = RedirectResponse(url="/dashboard", status_code=303)
    set_session_cookie(response, token)
    return response


@router.get("/logout")
def logout(request: Request):
    _, token = get_current_user(request)
    if token:
        delete_session(token)
    response = RedirectResponse(url="/", status_code=303)
    clear_session_cookie(response)
    return response

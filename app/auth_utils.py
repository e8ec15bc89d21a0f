"""
Helpers for session cookies and current-expert lookup.
"""
from __future__ import annotations

import os

from fastapi import Request
from fastapi.responses import RedirectResponse, Response

from core.database import delete_session, get_session, touch_session
from core.directory import get_directory
from core.models import UserStatus

SESSION_COOKIE_NAME = "session_id"
SESSION_COOKIE_MAX_AGE = 1800  # 30 minutes
SECURE_COOKIES = (
    os.getenv("COOKIE_SECURE", "").lower() in ("1", "true", "yes")
    or os.getenv("PUBLIC_BASE_URL", "").lower().startswith("https://")
)


def get_current_user(request: Request):
    """
    Read session cookie and return (expert, session_token) or (None, None).
    Refreshes inactivity timeout when the session is valid.
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None, None

    session = get_session(token)
    if not session:
        return None, token

    expert = get_directory().get(session["expert_id"])
    if not expert:
        delete_session(token)
        return None, token

    # Disabled accounts lose their session immediately
    if expert.status == UserStatus.DISABLED:
        delete_session(token)
        return None, token

    touch_session(token)
    return expert, token


def login_redirect() -> RedirectResponse:
    return RedirectResponse(url="/login", status_code=303)


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=SESSION_COOKIE_MAX_AGE,
        samesite="lax",
        secure=SECURE_COOKIES,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME)

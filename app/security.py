"""
Lightweight CSRF + rate limit helpers.
"""
from __future__ import annotations

import hmac
import os
import secrets
import time
from typing import Dict, List, Tuple

CSRF_COOKIE_NAME = "csrf_token"
SECURE_COOKIES = (
    os.getenv("COOKIE_SECURE", "").lower() in ("1", "true", "yes")
    or os.getenv("PUBLIC_BASE_URL", "").lower().startswith("https://")
)

# (limit, window_seconds) per action
RATE_LIMITS: Dict[str, Tuple[int, int]] = {
    "login": (10, 300),
    "signup": (5, 3600),
    "email": (5, 600),
    "ai": (10, 600),
}


def issue_csrf_token(existing: str | None = None) -> str:
    """Return a CSRF token (re-use existing if provided, else create a new one)."""
    return existing or secrets.token_urlsafe(16)


def csrf_field(token: str) -> str:
    return f'<input type="hidden" name="csrf_token" value="{token}" />'


def attach_csrf_cookie(response, token: str) -> None:
    """
    Attach the CSRF token as a non-HTTPOnly cookie (double-submit pattern).
    """
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=False,
        samesite="lax",
        secure=SECURE_COOKIES,
    )


def validate_csrf(request, form_token: str | None) -> bool:
    """Compare the submitted token with the cookie value using constant-time compare."""
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME) or ""
    form_token = form_token or ""
    if not cookie_token or not form_token:
        return False
    return hmac.compare_digest(cookie_token, form_token)


def client_ip(request) -> str:
    return request.client.host if request and request.client else "unknown"


# -------- Rate limiting (in-memory) --------
_rate_state: Dict[str, List[float]] = {}


def allow_action(action: str, request) -> Tuple[bool, int]:
    """Rate-limit `action` per client IP using RATE_LIMITS."""
    limit, window = RATE_LIMITS[action]
    return allow_request_with_remaining(f"{action}:{client_ip(request)}", limit=limit, window_seconds=window)


def allow_request_with_remaining(key: str, limit: int = 5, window_seconds: int = 60) -> Tuple[bool, int]:
    """
    Sliding-window rate limit with remaining-count feedback.
    Returns (allowed, remaining_after).
    """
    now = time.time()
    window_start = now - window_seconds
    history = [t for t in _rate_state.get(key, []) if t > window_start]
    if len(history) >= limit:
        _rate_state[key] = history
        return False, 0
    history.append(now)
    _rate_state[key] = history
    return True, max(0, limit - len(history))


def reset_rate_limits() -> None:
    _rate_state.clear()


__all__ = [
    "CSRF_COOKIE_NAME",
    "RATE_LIMITS",
    "issue_csrf_token",
    "csrf_field",
    "attach_csrf_cookie",
    "validate_csrf",
    "client_ip",
    "allow_action",
    "allow_request_with_remaining",
    "reset_rate_limits",
]

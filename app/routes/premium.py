"""
Premium upgrade through PayPal checkout.

Flow: POST /premium/order creates an order and redirects the buyer to PayPal; PayPal
sends them back to GET /premium/capture?token=<order id>, where the payment is
captured and the expert's tier is switched to premium.
"""
import logging
import os

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.auth_utils import get_current_user, login_redirect
from app.layout import esc, render_page
from app.security import SECURE_COOKIES, attach_csrf_cookie, csrf_field, issue_csrf_token, validate_csrf
from core.entitlements import FREE_BOOK_LIMIT, FREE_SPOTLIGHT_LIMIT, PREMIUM_BOOK_LIMIT, PREMIUM_SPOTLIGHT_LIMIT
from core.errors import PaymentError
from core.payments import PREMIUM_CURRENCY, PREMIUM_PRICE, capture_order, create_order
from core.profiles import upgrade_to_premium

log = logging.getLogger(__name__)

router = APIRouter()

ORDER_COOKIE_NAME = "premium_order"


def _base_url(request: Request) -> str:
    return (os.getenv("PUBLIC_BASE_URL") or str(request.base_url)).rstrip("/")


@router.get("/premium", response_class=HTMLResponse)
def premium_page(request: Request, status: str = ""):
    user, _ = get_current_user(request)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))

    notice = ""
    if status == "cancelled":
        notice = '<p class="muted">Checkout was cancelled. You have not been charged.</p>'
    elif status == "upgraded":
        notice = '<p class="notice">Welcome to Premium! Your new limits are active.</p>'

    if user and user.is_premium:
        action = '<p class="notice">You are a premium expert.</p>'
    elif user:
        action = f"""
        <form method="post" action="/premium/order">
          {csrf_field(csrf_token)}
          <button type="submit">Pay {esc(PREMIUM_PRICE)} {esc(PREMIUM_CURRENCY)} with PayPal</button>
        </form>
        """
    else:
        action = '<p><a href="/login">Log in</a> or <a href="/signup">join</a> to upgrade.</p>'

    body = f"""
    <div class="card form-card">
      {notice}
      <h2>BookDocker GO2 Premium</h2>
      <p>One year of premium for {esc(PREMIUM_PRICE)} {esc(PREMIUM_CURRENCY)}.</p>
      <table>
        <thead><tr><th></th><th>Free</th><th>Premium</th></tr></thead>
        <tbody>
          <tr><td>Books</td><td>{FREE_BOOK_LIMIT}</td><td>{PREMIUM_BOOK_LIMIT}</td></tr>
          <tr><td>Spotlights</td><td>{FREE_SPOTLIGHT_LIMIT}</td><td>{PREMIUM_SPOTLIGHT_LIMIT}</td></tr>
          <tr><td>Title Hive listing and alerts</td><td>-</td><td>Yes</td></tr>
          <tr><td>Away status</td><td>-</td><td>Yes</td></tr>
          <tr><td>Special offers</td><td>-</td><td>Yes</td></tr>
        </tbody>
      </table>
      {action}
    </div>
    """
    resp = render_page("Go Premium", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/premium/order")
def premium_order(request: Request, csrf_token: str = Form("")):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    if user.is_premium:
        return RedirectResponse(url="/premium", status_code=303)

    base = _base_url(request)
    order = create_order(return_url=f"{base}/premium/capture", cancel_url=f"{base}/premium?status=cancelled")
    if not order.approve_url:
        raise PaymentError("PayPal did not return an approval link.")

    log.info("Premium order created", extra={"expert_id": user.id, "order_id": order.id})
    resp = RedirectResponse(url=order.approve_url, status_code=303)
    resp.set_cookie(
        key=ORDER_COOKIE_NAME,
        value=order.id,
        max_age=3600,
        httponly=True,
        samesite="lax",
        secure=SECURE_COOKIES,
    )
    return resp


@router.get("/premium/capture")
def premium_capture(request: Request, token: str = ""):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()

    # PayPal passes the order id back as `token`; only the order we created may be captured.
    expected = request.cookies.get(ORDER_COOKIE_NAME)
    if not token or token != expected:
        raise PaymentError("Unknown or expired PayPal order.")

    capture_order(token)
    upgrade_to_premium(user.id)
    log.info("Expert upgraded to premium", extra={"expert_id": user.id, "order_id": token})

    resp = RedirectResponse(url="/premium?status=upgraded", status_code=303)
    resp.delete_cookie(ORDER_COOKIE_NAME)
    return resp

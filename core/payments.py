"""
PayPal Orders v2 client for the annual premium subscription.
"""
from __future__ import annotations

import base64
import logging
import os
from typing import Dict, NamedTuple, Optional

import requests

from core.errors import PaymentError

log = logging.getLogger(__name__)

PREMIUM_PRICE = os.getenv("PREMIUM_PRICE", "120.00")
PREMIUM_CURRENCY = os.getenv("PREMIUM_CURRENCY", "USD")
PREMIUM_DESCRIPTION = "BookDocker GO2 Premium Annual Subscription"
REQUEST_TIMEOUT = 15


class PayPalOrder(NamedTuple):
    id: str
    approve_url: Optional[str]


def _config() -> Dict[str, str]:
    client_id = os.getenv("PAYPAL_CLIENT_ID")
    client_secret = os.getenv("PAYPAL_CLIENT_SECRET")
    api_base = os.getenv("PAYPAL_API_BASE", "https://api-m.sandbox.paypal.com")
    if not client_id or not client_secret:
        raise RuntimeError("PayPal is not configured. Set PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET.")
    return {"client_id": client_id, "client_secret": client_secret, "api_base": api_base.rstrip("/")}


def get_access_token(session: requests.Session | None = None) -> str:
    """Client-credentials OAuth token."""
    cfg = _config()
    sess = session or requests.Session()
    basic = base64.b64encode(f"{cfg['client_id']}:{cfg['client_secret']}".encode()).decode()
    response = sess.post(
        f"{cfg['api_base']}/v1/oauth2/token",
        headers={
            "Authorization": f"Basic {basic}",
            "Content-Type": "application/x-www-form-urlencoded",
        },
        data="grant_type=client_credentials",
        timeout=REQUEST_TIMEOUT,
    )
    if not response.ok:
        log.error("PayPal auth error", extra={"status": response.status_code, "body": response.text})
        raise PaymentError("Failed to get PayPal access token.")
    return response.json()["access_token"]


def create_order(
    return_url: str | None = None,
    cancel_url: str | None = None,
    session: requests.Session | None = None,
) -> PayPalOrder:
    """Create a CAPTURE order for one year of premium. The buyer approves it at `approve_url`."""
    cfg = _config()
    sess = session or requests.Session()
    token = get_access_token(sess)
    payload = {
        "intent": "CAPTURE",
        "purchase_units": [
            {
                "amount": {"currency_code": PREMIUM_CURRENCY, "value": PREMIUM_PRICE},
                "description": PREMIUM_DESCRIPTION,
            }
        ],
    }
    if return_url or cancel_url:
        payload["application_context"] = {"return_url": return_url, "cancel_url": cancel_url}
    response = sess.post(
        f"{cfg['api_base']}/v2/checkout/orders",
        headers={"Content-Type": "application/json", "Authorization": f"Bearer {token}"},
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )
    if not response.ok:
        log.error("PayPal order creation error", extra={"status": response.status_code, "body": response.text})
        raise PaymentError("Failed to create PayPal order.")
    data = response.json()
    approve_url = next((link.get("href") for link in data.get("links", []) if link.get("rel") == "approve"), None)
    return PayPalOrder(id=data["id"], approve_url=approve_url)


def capture_order(order_id: str, session: requests.Session | None = None) -> Dict:
    """
    Capture an approved order. Returns PayPal's response body when the status is
    COMPLETED; anything else raises PaymentError.
    """
    if not order_id:
        raise PaymentError("Order ID is required to capture payment.")
    cfg = _config()
    sess = session or requests.Session()
    token = get_access_token(sess)
    response = sess.post(
        f"{cfg['api_base']}/v2/checkout/orders/{order_id}/capture",
        headers={"Content-Type": "application/json", "Authorization": f"Bearer {token}"},
        timeout=REQUEST_TIMEOUT,
    )
    if not response.ok:
        log.error("PayPal capture error", extra={"order_id": order_id, "body": response.text})
        raise PaymentError("Failed to capture PayPal payment.")
    data = response.json()
    if data.get("status") != "COMPLETED":
        raise PaymentError(f"Payment not completed. Status: {data.get('status')}")
    return data


__all__ = [
    "PREMIUM_PRICE",
    "PREMIUM_CURRENCY",
    "PayPalOrder",
    "get_access_token",
    "create_order",
    "capture_order",
]

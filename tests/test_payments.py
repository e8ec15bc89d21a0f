import pytest

from core import payments
from core.errors import PaymentError


class FakeResponse:
    def __init__(self, status_code=200, data=None):
        self.status_code = status_code
        self._data = data or {}
        self.text = str(self._data)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._data


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.responses.pop(0)


@pytest.fixture(autouse=True)
def paypal_env(monkeypatch):
    monkeypatch.setenv("PAYPAL_CLIENT_ID", "client")
    monkeypatch.setenv("PAYPAL_CLIENT_SECRET", "secret")
    monkeypatch.setenv("PAYPAL_API_BASE", "https://paypal.test/")


def _token():
    return FakeResponse(data={"access_token": "tok"})


def test_missing_credentials(monkeypatch):
    monkeypatch.delenv("PAYPAL_CLIENT_ID")
    with pytest.raises(RuntimeError):
        payments.create_order(session=FakeSession([]))


def test_create_order_returns_approve_link():
    session = FakeSession([
        _token(),
        FakeResponse(201, {
            "id": "ORDER1",
            "links": [
                {"rel": "self", "href": "https://paypal.test/self"},
                {"rel": "approve", "href": "https://paypal.test/approve"},
            ],
        }),
    ])

    order = payments.create_order(return_url="http://app/capture", cancel_url="http://app/cancel", session=session)

    assert order == payments.PayPalOrder(id="ORDER1", approve_url="https://paypal.test/approve")
    token_url, token_kwargs = session.calls[0]
    assert token_url == "https://paypal.test/v1/oauth2/token"
    assert token_kwargs["headers"]["Authorization"].startswith("Basic ")
    order_url, order_kwargs = session.calls[1]
    assert order_url == "https://paypal.test/v2/checkout/orders"
    assert order_kwargs["headers"]["Authorization"] == "Bearer tok"
    unit = order_kwargs["json"]["purchase_units"][0]
    assert unit["amount"] == {"currency_code": payments.PREMIUM_CURRENCY, "value": payments.PREMIUM_PRICE}
    assert order_kwargs["json"]["application_context"]["return_url"] == "http://app/capture"


def test_token_failure():
    with pytest.raises(PaymentError):
        payments.get_access_token(session=FakeSession([FakeResponse(401, {"error": "invalid_client"})]))


def test_capture_completed():
    session = FakeSession([_token(), FakeResponse(201, {"id": "ORDER1", "status": "COMPLETED"})])
    data = payments.capture_order("ORDER1", session=session)
    assert data["status"] == "COMPLETED"
    assert session.calls[1][0] == "https://paypal.test/v2/checkout/orders/ORDER1/capture"


def test_capture_not_completed_raises():
    session = FakeSession([_token(), FakeResponse(201, {"id": "ORDER1", "status": "PENDING"})])
    with pytest.raises(PaymentError):
        payments.capture_order("ORDER1", session=session)


def test_capture_http_error_raises():
    session = FakeSession([_token(), FakeResponse(422, {"name": "UNPROCESSABLE_ENTITY"})])
    with pytest.raises(PaymentError):
        payments.capture_order("ORDER1", session=session)


def test_capture_requires_order_id():
    with pytest.raises(PaymentError):
        payments.capture_order("")

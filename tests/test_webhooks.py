import hashlib
import hmac
import json

import httpx

from conftest import FakeSupabase
from truckmates.persistence.webhooks import WebhookRepository
from truckmates.services.webhooks import ROUTE_OPTIMIZED, WebhookDispatcher, sign_payload

PAYLOAD = {"route_id": "route-1", "optimized_stops": 3}


def _subscribe(db: FakeSupabase, **overrides) -> dict:
    webhook = {
        "id": "hook-1",
        "company_id": "company-1",
        "url": "https://hooks.example.com/truckmates",
        "secret": "s3cret",
        "active": True,
        "events": [ROUTE_OPTIMIZED, "load.created"],
        **overrides,
    }
    db.tables["webhooks"].append(webhook)
    return webhook


def _dispatcher(db: FakeSupabase, handler) -> WebhookDispatcher:
    return WebhookDispatcher(WebhookRepository(db), timeout=5, transport=httpx.MockTransport(handler))


def test_sign_payload_is_hmac_sha256_hex():
    expected = hmac.new(b"key", b'{"a": 1}', hashlib.sha256).hexdigest()

    assert sign_payload('{"a": 1}', "key") == expected


def test_delivery_is_signed_and_recorded(fake_db: FakeSupabase):
    _subscribe(fake_db)
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(200, text="ok")

    delivered = _dispatcher(fake_db, handler).trigger("company-1", ROUTE_OPTIMIZED, PAYLOAD)

    assert delivered == 1
    request = received[0]
    body = request.content.decode("utf-8")
    assert json.loads(body) == PAYLOAD
    assert request.headers["X-Webhook-Event"] == ROUTE_OPTIMIZED
    assert request.headers["X-Webhook-Signature"] == f"sha256={sign_payload(body, 's3cret')}"

    delivery = fake_db.tables["webhook_deliveries"][0]
    assert request.headers["X-Webhook-Delivery-Id"] == delivery["id"]
    assert delivery["status"] == "delivered"
    assert delivery["response_code"] == 200
    assert delivery["delivered_at"] is not None


def test_error_status_marks_delivery_failed(fake_db: FakeSupabase):
    _subscribe(fake_db)

    delivered = _dispatcher(fake_db, lambda request: httpx.Response(500, text="x" * 5000)).trigger(
        "company-1", ROUTE_OPTIMIZED, PAYLOAD
    )

    delivery = fake_db.tables["webhook_deliveries"][0]
    assert delivered == 0
    assert delivery["status"] == "failed"
    assert delivery["error_message"] == "HTTP 500: Internal Server Error"
    assert len(delivery["response_body"]) == 1000


def test_network_error_marks_delivery_failed(fake_db: FakeSupabase):
    _subscribe(fake_db)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    delivered = _dispatcher(fake_db, handler).trigger("company-1", ROUTE_OPTIMIZED, PAYLOAD)

    delivery = fake_db.tables["webhook_deliveries"][0]
    assert delivered == 0
    assert delivery["status"] == "failed"
    assert "connection refused" in delivery["error_message"]


def test_only_active_subscribers_of_the_company_are_called(fake_db: FakeSupabase):
    _subscribe(fake_db, id="inactive", active=False)
    _subscribe(fake_db, id="other-event", events=["load.created"])
    _subscribe(fake_db, id="other-company", company_id="company-2")
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(204)

    delivered = _dispatcher(fake_db, handler).trigger("company-1", ROUTE_OPTIMIZED, PAYLOAD)

    assert delivered == 0
    assert calls == []


def test_subscription_lookup_failure_delivers_nothing(fake_db: FakeSupabase):
    fake_db.fail("webhooks", "select", ConnectionError("database unreachable"))

    assert _dispatcher(fake_db, lambda request: httpx.Response(200)).trigger(
        "company-1", ROUTE_OPTIMIZED, PAYLOAD
    ) == 0

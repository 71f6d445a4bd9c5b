"""Outbound webhook delivery for tenant subscriptions."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging

import httpx

from ...config import settings
from ...persistence.routes import utc_timestamp
from ...persistence.webhooks import WebhookRepository

ROUTE_OPTIMIZED = "route.optimized"
MAX_RESPONSE_BODY_CHARS = 1000


def sign_payload(body: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


class WebhookDispatcher:
    def __init__(
        self,
        repository: WebhookRepository | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.repository = repository or WebhookRepository()
        self.timeout = timeout if timeout is not None else settings.webhook_timeout_seconds
        self._transport = transport

    def trigger(self, company_id: str, event_type: str, payload: dict) -> int:
        """Deliver ``payload`` to every active subscriber; returns the number delivered."""
        try:
            webhooks = self.repository.list_subscribed(company_id, event_type)
        except Exception as e:
            logging.warning(f"Failed to load webhooks for company {company_id}: {e}")
            return 0

        delivered = 0
        for webhook in webhooks:
            try:
                if self.deliver(webhook, event_type, payload):
                    delivered += 1
            except Exception as e:
                logging.error(f"Failed to deliver webhook {webhook.get('id')}: {e}")
        return delivered

    def deliver(self, webhook: dict, event_type: str, payload: dict) -> bool:
        body = json.dumps(payload)
        signature = sign_payload(body, webhook.get("secret") or "")
        delivery = self.repository.create_delivery(webhook["id"], event_type, payload)

        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Event": event_type,
            "X-Webhook-Signature": f"sha256={signature}",
            "X-Webhook-Delivery-Id": str(delivery["id"]),
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(webhook["url"], content=body, headers=headers)
        except httpx.HTTPError as e:
            logging.warning(f"Webhook {webhook['id']} delivery failed: {e}")
            self.repository.update_delivery(
                delivery["id"],
                {"status": "failed", "error_message": str(e) or "Network error", "attempts": 1},
            )
            return False

        ok = response.is_success
        self.repository.update_delivery(
            delivery["id"],
            {
                "status": "delivered" if ok else "failed",
                "response_code": response.status_code,
                "response_body": response.text[:MAX_RESPONSE_BODY_CHARS],
                "delivered_at": utc_timestamp() if ok else None,
                "attempts": 1,
                "error_message": None if ok else f"HTTP {response.status_code}: {response.reason_phrase}",
            },
        )
        if not ok:
            logging.warning(f"Webhook {webhook['id']} answered HTTP {response.status_code}")
        return ok

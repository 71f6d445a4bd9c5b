"""Supabase persistence for webhook subscriptions and delivery records."""

from __future__ import annotations

from typing import Any

from ..db.supabase import get_supabase_client
from .routes import DatabaseNotConfiguredError


class WebhookRepository:
    def __init__(self, client: Any | None = None) -> None:
        self.client = client if client is not None else get_supabase_client()
        if self.client is None:
            raise DatabaseNotConfiguredError("Supabase not configured - webhooks unavailable.")

    def list_subscribed(self, company_id: str, event_type: str) -> list[dict]:
        response = (
            self.client.table("webhooks")
            .select("*")
            .eq("company_id", company_id)
            .eq("active", True)
            .contains("events", [event_type])
            .execute()
        )
        return response.data or []

    def create_delivery(self, webhook_id: str, event_type: str, payload: dict) -> dict:
        response = (
            self.client.table("webhook_deliveries")
            .insert(
                {
                    "webhook_id": webhook_id,
                    "event_type": event_type,
                    "payload": payload,
                    "status": "pending",
                    "attempts": 0,
                }
            )
            .execute()
        )
        rows = response.data or []
        if not rows:
            raise RuntimeError("Insert into webhook_deliveries returned no row.")
        return rows[0]

    def update_delivery(self, delivery_id: str, values: dict[str, Any]) -> None:
        self.client.table("webhook_deliveries").update(values).eq("id", delivery_id).execute()

"""Webhook delivery services."""

from .dispatcher import ROUTE_OPTIMIZED, WebhookDispatcher, sign_payload

__all__ = ["ROUTE_OPTIMIZED", "WebhookDispatcher", "sign_payload"]

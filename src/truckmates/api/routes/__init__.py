"""API route modules."""

from . import health, route_stops, routes

__all__ = ["health", "route_stops", "routes"]

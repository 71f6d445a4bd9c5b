"""Tenant-scoped route stop management."""

from __future__ import annotations

import logging
from typing import Sequence

from ...persistence.routes import UNIQUE_VIOLATION, RouteRepository, error_code
from ...schemas.route_stops import Envelope, RouteStopCreate, RouteStopUpdate, RouteSummary
from ..geospatial import haversine_miles
from ..routing.costing import round_half_up

UNEXPECTED_ERROR = "An unexpected error occurred"

# Optional text columns stored as NULL rather than empty strings.
_NULLABLE_TEXT = {
    "location_id", "city", "state", "zip", "phone", "contact_name", "contact_phone", "priority",
    "salesman_id", "arrive_time", "depart_time", "time_window_1_open", "time_window_1_close",
    "time_window_2_open", "time_window_2_close", "special_instructions", "notes",
}
_COUNTS = ("carts", "boxes", "pallets", "orders")


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or UNEXPECTED_ERROR


def _normalize(values: dict) -> dict:
    normalized = {}
    for key, value in values.items():
        if key in _NULLABLE_TEXT and value == "":
            value = None
        normalized[key] = value
    return normalized


def _touch_parent_route(repository: RouteRepository, stop: dict, company_id: str) -> None:
    if stop.get("route_id"):
        repository.touch_route(stop["route_id"], company_id)


def get_route_stops(route_id: str, *, company_id: str, repository: RouteRepository | None = None) -> Envelope:
    try:
        repository = repository or RouteRepository()
        return Envelope(data=repository.list_route_stops(route_id, company_id))
    except Exception as e:
        logging.error(f"Failed to list stops for route {route_id}: {e}")
        return Envelope(error=_error_message(e))


def create_route_stop(
    route_id: str,
    payload: RouteStopCreate,
    *,
    company_id: str,
    repository: RouteRepository | None = None,
) -> Envelope:
    try:
        repository = repository or RouteRepository()
        if not repository.get_route(route_id, company_id):
            return Envelope(error="Route not found")

        values = _normalize(payload.model_dump(mode="json"))
        for key in _COUNTS:
            values[key] = values.get(key) or 0
        values.update({"route_id": route_id, "company_id": company_id})
        stop = repository.insert_route_stop(values)
        repository.touch_route(route_id, company_id)
        return Envelope(data=stop)
    except Exception as e:
        if error_code(e) == UNIQUE_VIOLATION:
            return Envelope(error="Stop number already exists for this route")
        logging.error(f"Failed to create stop for route {route_id}: {e}")
        return Envelope(error=_error_message(e))


def update_route_stop(
    stop_id: str,
    payload: RouteStopUpdate,
    *,
    company_id: str,
    repository: RouteRepository | None = None,
) -> Envelope:
    values = _normalize(payload.model_dump(mode="json", exclude_unset=True))
    if not values:
        return Envelope(error="No fields to update")
    try:
        repository = repository or RouteRepository()
        stop = repository.update_route_stop(stop_id, company_id, values)
        if stop is None:
            return Envelope(error="Stop not found")
        _touch_parent_route(repository, stop, company_id)
        return Envelope(data=stop)
    except Exception as e:
        logging.error(f"Failed to update stop {stop_id}: {e}")
        return Envelope(error=_error_message(e))


def delete_route_stop(stop_id: str, *, company_id: str, repository: RouteRepository | None = None) -> Envelope:
    try:
        repository = repository or RouteRepository()
        stop = repository.get_route_stop(stop_id, company_id)
        if not stop:
            return Envelope(error="Stop not found")
        repository.delete_route_stop(stop_id, company_id)
        _touch_parent_route(repository, stop, company_id)
        return Envelope(data={"success": True})
    except Exception as e:
        logging.error(f"Failed to delete stop {stop_id}: {e}")
        return Envelope(error=_error_message(e))


def reorder_route_stops(
    route_id: str,
    stop_ids: Sequence[str],
    *,
    company_id: str,
    repository: RouteRepository | None = None,
) -> Envelope:
    """Renumber stops 1..N in the order given."""
    if len(set(stop_ids)) != len(stop_ids):
        return Envelope(error="Duplicate stop ids in new order")
    try:
        repository = repository or RouteRepository()
        for stop_number, stop_id in enumerate(stop_ids, start=1):
            repository.set_stop_number(stop_id, route_id, company_id, stop_number)
        repository.touch_route(route_id, company_id)
        return Envelope(data={"success": True})
    except Exception as e:
        logging.error(f"Failed to reorder stops for route {route_id}: {e}")
        return Envelope(error=_error_message(e))


def _path_distance_miles(stops: list[dict]) -> float:
    points = [
        (stop["coordinates"]["lat"], stop["coordinates"]["lng"])
        for stop in stops
        if (stop.get("coordinates") or {}).get("lat") is not None
        and (stop.get("coordinates") or {}).get("lng") is not None
    ]
    return sum(haversine_miles(*a, *b) for a, b in zip(points, points[1:]))


def summarize_stops(stops: list[dict]) -> RouteSummary:
    def total(key: str, quantity_type: str | None = None) -> int:
        return sum(
            int(stop.get(key) or 0)
            for stop in stops
            if quantity_type is None or stop.get("quantity_type") == quantity_type
        )

    counts = {}
    for key in _COUNTS:
        counts[f"total_{key}"] = total(key)
        counts[f"delivery_{key}"] = total(key, "delivery")
        counts[f"pickup_{key}"] = total(key, "pickup")

    return RouteSummary(
        total_stops=len(stops),
        total_travel_time_minutes=total("travel_time_minutes"),
        total_service_time_minutes=total("service_time_minutes"),
        total_distance=round_half_up(_path_distance_miles(stops), 1),
        **counts,
    )


def get_route_summary(route_id: str, *, company_id: str, repository: RouteRepository | None = None) -> Envelope:
    result = get_route_stops(route_id, company_id=company_id, repository=repository)
    if result.error or result.data is None:
        return Envelope(error=result.error or "Failed to get stops")
    return Envelope(data=summarize_stops(result.data))

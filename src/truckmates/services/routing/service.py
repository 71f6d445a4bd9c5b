"""Routing orchestration service."""

from __future__ import annotations

import logging
import re
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import MultiStopOptimization, RouteDistance, Stop, StopRank
from ...persistence.routes import RouteRepository
from ...schemas.routing import RouteSuggestion, RouteSuggestionsResponse
from ..webhooks import ROUTE_OPTIMIZED, WebhookDispatcher
from .google_maps_client import GoogleMapsClient
from .providers import DistanceSource
from .sequencer import optimize_route_order

NOT_ENOUGH_STOPS = "Not enough stops to optimize"
ROUTE_NOT_FOUND = "Route not found"
CONCURRENT_MODIFICATION = "Route was modified by another request; retry the optimization"
MISSING_API_KEY = (
    "Google Maps API key not configured. Using estimated values. "
    "Set GOOGLE_MAPS_API_KEY in environment variables for accurate calculations."
)

_PRIORITY_LEVELS = {"high": 3, "medium": 2}


def format_duration(minutes: int) -> str:
    """Render whole minutes as ``"Xh Ym"``."""
    hours, remainder = divmod(int(minutes), 60)
    return f"{hours}h {remainder}m"


def format_distance(miles: float) -> str:
    """``81.4 -> "81.4 miles"``, ``92.0 -> "92 miles"``."""
    text = f"{miles:.1f}".rstrip("0").rstrip(".")
    return f"{text} miles"


def parse_distance(value: str | None) -> float:
    digits = re.sub(r"[^0-9.]", "", value or "")
    try:
        return float(digits) if digits else 0.0
    except ValueError:
        return 0.0


def stop_from_row(row: dict) -> Stop:
    """Map a ``route_stops`` row to a sequencer stop."""
    coordinates = row.get("coordinates") or {}
    address = row.get("address") or row.get("location_name") or ""
    return Stop(
        id=str(row["id"]),
        address=address,
        lat=coordinates.get("lat"),
        lng=coordinates.get("lng"),
        priority=_PRIORITY_LEVELS.get(str(row.get("priority") or "").lower(), 1),
        time_window_start=row.get("time_window_1_open"),
        time_window_end=row.get("time_window_1_close"),
    )


def calculate_route_distance(
    origin: str,
    destination: str,
    *,
    client: GoogleMapsClient | None = None,
) -> RouteDistance:
    """Driving distance (miles) and duration (minutes) between two addresses."""
    if client is None:
        if not settings.google_maps_api_key:
            return RouteDistance(
                distance=settings.fallback_route_distance_miles,
                duration=settings.fallback_route_duration_minutes,
                used_external_api=False,
                error=MISSING_API_KEY,
            )
        client = GoogleMapsClient()

    try:
        element = client.distance_matrix_element(origin, destination)
        status = element.get("status")
        if status != "OK":
            return RouteDistance(
                distance=0, duration=0, used_external_api=True, error=f"Google Maps API error: {status}"
            )
        distance, duration = client.element_distance_and_duration(element)
    except ValueError as e:
        return RouteDistance(distance=0, duration=0, used_external_api=True, error=str(e))
    except (httpx.HTTPError, ConnectionError) as e:
        logging.warning(f"Route distance lookup failed: {e}")
        return RouteDistance(
            distance=0,
            duration=0,
            used_external_api=False,
            error=str(e) or "Failed to calculate route distance",
        )

    return RouteDistance(distance=distance, duration=duration, used_external_api=True)


def optimize_multi_stop_route(
    route_id: str,
    *,
    company_id: str,
    repository: RouteRepository | None = None,
    distance_source: DistanceSource | None = None,
    webhooks: WebhookDispatcher | None = None,
) -> MultiStopOptimization:
    """Re-sequence a stored route's stops and write the new order back."""
    try:
        repository = repository or RouteRepository()
        route = repository.get_route(route_id, company_id)
        if not route:
            return MultiStopOptimization(optimized=False, error=ROUTE_NOT_FOUND)

        rows = repository.list_route_stops(route_id, company_id)
        if len(rows) <= 1:
            return MultiStopOptimization(optimized=False, error=NOT_ENOUGH_STOPS)

        stops = [stop_from_row(row) for row in rows]
        result = optimize_route_order(stops, distance_source=distance_source)

        claimed = repository.update_route_totals(
            route_id,
            company_id,
            distance=format_distance(result.total_distance),
            estimated_time=format_duration(result.estimated_time),
            expected_updated_at=route.get("updated_at"),
        )
        if not claimed:
            logging.warning(f"Route {route_id} changed during optimization; stop order not written")
            return MultiStopOptimization(optimized=False, error=CONCURRENT_MODIFICATION)

        _write_stop_order(repository, route, rows, result.optimized_order, company_id)
    except Exception as e:
        logging.exception(f"Error optimizing route {route_id}: {e}")
        return MultiStopOptimization(optimized=False, error=str(e) or "An unexpected error occurred")

    logging.info(
        f"Optimized route {route_id}: {len(result.optimized_order)} stops, "
        f"{result.total_distance} mi, {result.estimated_time} min (external API: {result.used_external_api})"
    )
    _notify_optimized(company_id, route_id, result, webhooks)

    return MultiStopOptimization(
        optimized=True,
        optimized_stops=result.optimized_order,
        distance=result.total_distance,
        time=result.estimated_time,
        fuel_cost=result.total_fuel_cost,
        toll_cost=result.total_toll_cost,
        total_cost=result.total_cost,
    )


def _write_stop_order(
    repository: RouteRepository,
    route: dict,
    rows: list[dict],
    order: Sequence[StopRank],
    company_id: str,
) -> None:
    """Renumber stops; on failure put back the numbers and route totals read before the run."""
    route_id = route["id"]
    written: list[str] = []
    try:
        for rank in order:
            repository.set_stop_number(rank.id, route_id, company_id, rank.order)
            written.append(rank.id)
    except Exception:
        previous = {str(row["id"]): row.get("stop_number") for row in rows}
        try:
            for stop_id in written:
                repository.set_stop_number(stop_id, route_id, company_id, previous[stop_id])
            repository.update_route_totals(
                route_id,
                company_id,
                distance=route.get("distance"),
                estimated_time=route.get("estimated_time"),
                expected_updated_at=None,
            )
        except Exception as e:
            logging.error(f"Failed to roll back stop order of route {route_id}: {e}")
        raise


def _notify_optimized(company_id: str, route_id: str, result, webhooks: WebhookDispatcher | None) -> None:
    try:
        dispatcher = webhooks or WebhookDispatcher()
        dispatcher.trigger(
            company_id,
            ROUTE_OPTIMIZED,
            {
                "route_id": route_id,
                "optimized_stops": len(result.optimized_order),
                "total_distance": result.total_distance,
                "estimated_time": result.estimated_time,
                "total_fuel_cost": result.total_fuel_cost,
                "total_toll_cost": result.total_toll_cost,
                "total_cost": result.total_cost,
            },
        )
    except Exception as e:
        logging.warning(f"Webhook trigger for route {route_id} failed: {e}")


def _matches(left: str | None, right: str | None) -> bool:
    left = (left or "").lower()
    right = (right or "").lower()
    return right in left or left in right


def get_route_suggestions(
    load_ids: Sequence[str],
    *,
    company_id: str,
    repository: RouteRepository | None = None,
) -> RouteSuggestionsResponse:
    """Rank the tenant's routes against the origins/destinations of pending loads."""
    try:
        repository = repository or RouteRepository()
        loads = repository.list_pending_loads(list(load_ids), company_id)
        if not loads:
            return RouteSuggestionsResponse(suggestions=[], error="No pending loads found")
        routes = repository.list_routes(company_id)
    except Exception as e:
        logging.exception(f"Error building route suggestions: {e}")
        return RouteSuggestionsResponse(suggestions=[], error=str(e) or "An unexpected error occurred")

    suggestions: list[RouteSuggestion] = []
    for route in routes:
        for load in loads:
            origin_match = _matches(route.get("origin"), load.get("origin"))
            destination_match = _matches(route.get("destination"), load.get("destination"))
            if not (origin_match or destination_match):
                continue
            suggestions.append(
                RouteSuggestion(
                    route_id=str(route["id"]),
                    route_name=route.get("name") or f"{route.get('origin')} → {route.get('destination')}",
                    distance=parse_distance(route.get("distance")),
                    efficiency=100 if origin_match and destination_match else 50,
                )
            )

    suggestions.sort(key=lambda suggestion: suggestion.efficiency, reverse=True)
    return RouteSuggestionsResponse(suggestions=suggestions)

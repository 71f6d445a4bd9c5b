"""Greedy nearest-neighbour sequencing of multi-stop routes.

The first stop anchors the route. From the current stop every unvisited
candidate is measured, the distance is scaled by the candidate's priority,
and the cheapest candidate becomes the next stop. It is not a
TSP solver.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from ...config import settings
from ...models.domain import OptimizedRoute, Stop, StopRank
from .costing import CostOptions, constraint_violations, fuel_cost, round_half_up
from .providers import DistanceEstimate, DistanceSource, PlaceholderProvider, clamp_priority


def priority_factor(stop: Stop) -> float:
    priority = clamp_priority(stop.priority)
    if not priority:
        return 1.0
    return (100.0 - priority) / 100.0


def _resolve_missing_coordinates(stops: Sequence[Stop], source: DistanceSource) -> list[Stop]:
    resolved: list[Stop] = []
    for stop in stops:
        if stop.has_coordinates:
            resolved.append(stop)
            continue
        point = source.resolve_coordinates(stop.address)
        resolved.append(stop.with_point(point) if point else stop)
    return resolved


class _Measurer:
    """Pairwise estimates that never raise; failures fall back to the placeholder tier."""

    def __init__(self, source: DistanceSource, max_parallel_requests: int) -> None:
        self.source = source
        self.max_parallel_requests = max_parallel_requests
        self._placeholder = PlaceholderProvider()

    def measure(self, origin: Stop, destination: Stop) -> DistanceEstimate:
        try:
            estimate = self.source.distance_and_duration(origin, destination)
        except Exception as e:
            logging.warning(f"Distance lookup {origin.id} -> {destination.id} failed: {e}")
            estimate = None
        if estimate is None:
            estimate = self._placeholder.estimate(origin, destination)
        return estimate

    def measure_all(self, origin: Stop, candidates: list[Stop]) -> list[DistanceEstimate]:
        # Every candidate is measured before selection; order of results follows candidates.
        if self.max_parallel_requests <= 1 or len(candidates) <= 1:
            return [self.measure(origin, candidate) for candidate in candidates]
        workers = min(self.max_parallel_requests, len(candidates))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda candidate: self.measure(origin, candidate), candidates))


def optimize_route_order(
    stops: Sequence[Stop],
    *,
    distance_source: DistanceSource | None = None,
    options: CostOptions | None = None,
    max_parallel_requests: int | None = None,
) -> OptimizedRoute:
    """Sequence ``stops`` with the nearest-neighbour heuristic.

    Args:
        stops: Stops in caller order; the first one is the route origin.
        distance_source: Provider chain to measure with. A default chain is
            built per call when omitted.
        options: Fuel, toll and suitability settings for the cost report.
        max_parallel_requests: Concurrent lookups per step (defaults to settings).

    Returns:
        OptimizedRoute with 1-based ranks, totals rounded once at the end and
        the flag telling whether the Google Distance Matrix answered any lookup.
    """
    options = options or CostOptions()
    stops = list(stops)

    if len(stops) <= 1:
        return OptimizedRoute(
            optimized_order=[StopRank(stop.id, index) for index, stop in enumerate(stops, start=1)],
            total_distance=0.0,
            estimated_time=0,
            used_external_api=False,
        )

    ids = [stop.id for stop in stops]
    if len(set(ids)) != len(ids):
        raise ValueError("Stop ids must be unique within a route.")

    source = distance_source or DistanceSource.default()
    measurer = _Measurer(source, max_parallel_requests or settings.distance_max_parallel_requests)

    stops = _resolve_missing_coordinates(stops, source)
    unresolved = [stop.id for stop in stops if not stop.has_coordinates]
    if unresolved:
        logging.info(f"No coordinates for stops {unresolved}; placeholder distances will be used")

    current = stops[0]
    unvisited = stops[1:]
    optimized_order = [StopRank(current.id, 1)]
    total_distance = 0.0
    total_time = 0.0
    total_toll_cost = 0.0

    while unvisited:
        estimates = measurer.measure_all(current, unvisited)

        nearest_index: int | None = None
        nearest_cost = float("inf")
        for index, (candidate, estimate) in enumerate(zip(unvisited, estimates)):
            adjusted = estimate.distance_miles * priority_factor(candidate)
            if adjusted < nearest_cost:
                nearest_cost = adjusted
                nearest_index = index

        if nearest_index is None:
            logging.warning(f"No reachable candidate after {current.id}; stopping with {len(unvisited)} unvisited")
            break

        nearest = unvisited.pop(nearest_index)
        hop = estimates[nearest_index]
        total_distance += hop.distance_miles
        total_time += hop.duration_minutes
        if options.include_tolls:
            total_toll_cost += source.toll_distance_miles(current, nearest) * options.toll_rate_per_mile

        optimized_order.append(StopRank(nearest.id, len(optimized_order) + 1))
        current = nearest

    total_fuel_cost = fuel_cost(total_distance, options.fuel_price_per_gallon, options.mpg)

    return OptimizedRoute(
        optimized_order=optimized_order,
        total_distance=round_half_up(total_distance, 1),
        estimated_time=int(round_half_up(total_time)),
        used_external_api=source.used_external_api,
        total_fuel_cost=round_half_up(total_fuel_cost, 2),
        total_toll_cost=round_half_up(total_toll_cost, 2),
        total_cost=round_half_up(total_distance + total_fuel_cost + total_toll_cost, 2),
        constraint_violations=constraint_violations(stops, options),
    )

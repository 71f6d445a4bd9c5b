"""Domain models for routes, stops and sequencing results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass(slots=True, frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def as_query(self) -> str:
        return f"{self.lat},{self.lng}"


@dataclass(slots=True)
class Stop:
    """A pickup or delivery location handed to the sequencer.

    ``address`` is used for on-demand geocoding when ``lat``/``lng`` are missing.
    Stops with neither are still sequenced, at placeholder distances; request
    schemas reject them at the API boundary.
    ``weight``/``height`` (lbs / feet) only feed the suitability report.
    """

    id: str
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    priority: Optional[float] = None
    time_window_start: Optional[str] = None
    time_window_end: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def point(self) -> GeoPoint | None:
        if not self.has_coordinates:
            return None
        return GeoPoint(self.lat, self.lng)

    def with_point(self, point: GeoPoint) -> "Stop":
        return replace(self, lat=point.lat, lng=point.lng)


@dataclass(slots=True, frozen=True)
class StopRank:
    id: str
    order: int


@dataclass(slots=True)
class OptimizedRoute:
    optimized_order: list[StopRank]
    total_distance: float
    estimated_time: int
    used_external_api: bool
    total_fuel_cost: float = 0.0
    total_toll_cost: float = 0.0
    total_cost: float = 0.0
    constraint_violations: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RouteDistance:
    distance: float
    duration: float
    used_external_api: bool
    error: Optional[str] = None


@dataclass(slots=True)
class MultiStopOptimization:
    optimized: bool
    optimized_stops: Optional[list[StopRank]] = None
    distance: Optional[float] = None
    time: Optional[int] = None
    fuel_cost: Optional[float] = None
    toll_cost: Optional[float] = None
    total_cost: Optional[float] = None
    error: Optional[str] = None

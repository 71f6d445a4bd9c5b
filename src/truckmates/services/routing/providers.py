"""Distance providers and the Distance Source that chains them.

Each provider answers ``estimate(origin, destination)`` with a
:class:`DistanceEstimate` or ``None`` when it cannot serve the pair. The
:class:`DistanceSource` tries its providers in order, so the default chain
degrades from the Google Distance Matrix to great-circle math to a fixed
placeholder and never fails outright.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import GeoPoint, Stop
from ..geospatial import haversine_miles, travel_minutes
from .google_maps_client import GoogleMapsClient

GOOGLE = "google"
GREAT_CIRCLE = "great_circle"
PLACEHOLDER = "placeholder"


@dataclass(slots=True, frozen=True)
class DistanceEstimate:
    distance_miles: float
    duration_minutes: float
    source: str

    @property
    def external(self) -> bool:
        return self.source == GOOGLE


def clamp_priority(priority: float | None) -> float | None:
    """Clamp a stop priority into [0, 100]; values outside are logged."""
    if priority is None:
        return None
    clamped = min(max(float(priority), 0.0), 100.0)
    if clamped != priority:
        logging.warning(f"Stop priority {priority} is outside [0, 100]; using {clamped:g}")
    return clamped


class DistanceProvider(ABC):
    """Contract for one tier of the distance fallback chain."""

    name: str

    @abstractmethod
    def estimate(self, origin: Stop, destination: Stop) -> DistanceEstimate | None:
        raise NotImplementedError


class GoogleDistanceMatrixProvider(DistanceProvider):
    name = GOOGLE

    def __init__(self, client: GoogleMapsClient) -> None:
        self.client = client

    def estimate(self, origin: Stop, destination: Stop) -> DistanceEstimate | None:
        if not (origin.has_coordinates and destination.has_coordinates):
            return None
        try:
            result = self.client.distance_and_duration(origin.point, destination.point)
        except (httpx.HTTPError, ConnectionError, ValueError) as e:
            logging.warning(f"Distance Matrix lookup {origin.id} -> {destination.id} failed: {e}")
            return None
        if result is None:
            return None
        distance, duration = result
        return DistanceEstimate(distance, duration, self.name)


class GreatCircleProvider(DistanceProvider):
    name = GREAT_CIRCLE

    def __init__(self, speed_mph: float | None = None) -> None:
        self.speed_mph = speed_mph or settings.average_speed_mph

    def estimate(self, origin: Stop, destination: Stop) -> DistanceEstimate | None:
        if not (origin.has_coordinates and destination.has_coordinates):
            return None
        distance = haversine_miles(origin.lat, origin.lng, destination.lat, destination.lng)
        return DistanceEstimate(distance, travel_minutes(distance, self.speed_mph), self.name)


class PlaceholderProvider(DistanceProvider):
    """Constant distance for pairs without coordinates, scaled down by priority."""

    name = PLACEHOLDER

    def __init__(self, default_miles: float | None = None, speed_mph: float | None = None) -> None:
        self.default_miles = default_miles or settings.fallback_distance_miles
        self.speed_mph = speed_mph or settings.average_speed_mph

    def estimate(self, origin: Stop, destination: Stop) -> DistanceEstimate | None:
        priority = clamp_priority(destination.priority)
        distance = 1000.0 / priority if priority else self.default_miles
        return DistanceEstimate(distance, travel_minutes(distance, self.speed_mph), self.name)


class DistanceSource:
    """Ordered provider chain with per-instance memoisation.

    Build one per optimisation run; estimates are cached for the lifetime of
    the instance only.
    """

    def __init__(
        self,
        providers: Sequence[DistanceProvider],
        maps_client: GoogleMapsClient | None = None,
    ) -> None:
        if not providers:
            raise ValueError("At least one distance provider is required.")
        self.providers = list(providers)
        self.maps_client = maps_client
        self.used_external_api = False
        self._cache: dict[tuple[str, str], DistanceEstimate] = {}
        self._lock = threading.Lock()

    @classmethod
    def default(cls, api_key: str | None = None, transport: httpx.BaseTransport | None = None) -> "DistanceSource":
        """Google (when a key is configured) -> great circle -> placeholder."""
        providers: list[DistanceProvider] = []
        maps_client = None
        key = api_key or settings.google_maps_api_key
        if key:
            maps_client = GoogleMapsClient(api_key=key, transport=transport)
            providers.append(GoogleDistanceMatrixProvider(maps_client))
        providers.extend([GreatCircleProvider(), PlaceholderProvider()])
        return cls(providers, maps_client=maps_client)

    def resolve_coordinates(self, address: str) -> GeoPoint | None:
        if self.maps_client is None or not (address or "").strip():
            return None
        try:
            return self.maps_client.geocode(address)
        except (httpx.HTTPError, ConnectionError, ValueError, KeyError, TypeError) as e:
            logging.warning(f"Geocoding '{address}' failed: {e}")
            return None

    def distance_and_duration(self, origin: Stop, destination: Stop) -> DistanceEstimate:
        key = (origin.id, destination.id)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        for provider in self.providers:
            estimate = provider.estimate(origin, destination)
            if estimate is None:
                continue
            with self._lock:
                self._cache[key] = estimate
                if estimate.external:
                    self.used_external_api = True
            return estimate

        raise LookupError(f"No distance provider could estimate {origin.id} -> {destination.id}")

    def toll_distance_miles(self, origin: Stop, destination: Stop) -> float:
        """Routed distance used for toll estimates; 0 when unavailable."""
        if self.maps_client is None or not (origin.has_coordinates and destination.has_coordinates):
            return 0.0
        try:
            return self.maps_client.directions_distance_miles(origin.point, destination.point) or 0.0
        except (httpx.HTTPError, ConnectionError, ValueError) as e:
            logging.warning(f"Directions lookup {origin.id} -> {destination.id} failed: {e}")
            return 0.0

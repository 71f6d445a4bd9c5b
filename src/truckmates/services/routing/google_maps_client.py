"""HTTP client for the Google Maps Geocoding, Distance Matrix and Directions APIs."""

from __future__ import annotations

import logging
import time

import httpx

from ...config import settings
from ...models.domain import GeoPoint
from ..geospatial import meters_to_miles

logger = logging.getLogger(__name__)

Location = GeoPoint | str


def _location_param(location: Location) -> str:
    return location if isinstance(location, str) else location.as_query()


class GoogleMapsClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = (base_url or settings.google_maps_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.google_maps_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.google_maps_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.google_maps_backoff_seconds
        )
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        # One client per call so lookups can run from worker threads.
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            transport=self._transport,
        )

    def _get_json(self, endpoint: str, params: dict[str, str]) -> dict:
        url = f"{self.base_url}/{endpoint}/json"
        query = {**params, "key": self.api_key}

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=query)
                    response.raise_for_status()
                    data = response.json()
                    if not isinstance(data, dict):
                        raise ValueError(f"Unexpected Google Maps {endpoint} payload.")
                    return data
                except httpx.HTTPStatusError:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Google Maps {endpoint} request timed out after {attempt} attempt(s): {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Google Maps timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.ConnectError, httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ConnectionError(
                            f"Failed to connect to Google Maps at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Google Maps network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
        finally:
            client.close()

    def geocode(self, address: str) -> GeoPoint | None:
        """Return the first geocoding match for ``address`` or None."""
        data = self._get_json("geocode", {"address": address})
        results = data.get("results") or []
        if not results:
            return None
        location = results[0]["geometry"]["location"]
        return GeoPoint(float(location["lat"]), float(location["lng"]))

    def distance_matrix_element(self, origin: Location, destination: Location) -> dict:
        """Return the single element of a one-origin, one-destination matrix.

        Raises:
            ValueError: when the payload does not contain a matrix element.
        """
        data = self._get_json(
            "distancematrix",
            {
                "origins": _location_param(origin),
                "destinations": _location_param(destination),
                "units": "imperial",
            },
        )
        try:
            return data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError("Invalid response from Google Maps API") from e

    @staticmethod
    def element_distance_and_duration(element: dict) -> tuple[float, float]:
        """Miles and minutes of an OK matrix element.

        Raises:
            ValueError: when the element lacks a numeric distance or duration.
        """
        try:
            meters = float(element["distance"]["value"])
            seconds = float(element["duration"]["value"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError("Invalid response from Google Maps API") from e
        return meters_to_miles(meters), seconds / 60.0

    def distance_and_duration(self, origin: Location, destination: Location) -> tuple[float, float] | None:
        """Driving distance in miles and duration in minutes, or None for a non-OK element."""
        element = self.distance_matrix_element(origin, destination)
        if element.get("status") != "OK":
            return None
        return self.element_distance_and_duration(element)

    def directions_distance_miles(self, origin: Location, destination: Location) -> float | None:
        """Distance in miles of the first returned driving route with legs."""
        data = self._get_json(
            "directions",
            {
                "origin": _location_param(origin),
                "destination": _location_param(destination),
                "alternatives": "true",
            },
        )
        for route in data.get("routes") or []:
            legs = route.get("legs") or []
            if legs:
                meters = sum((leg.get("distance") or {}).get("value", 0) for leg in legs)
                return meters_to_miles(meters)
        return None


def check_health(api_key: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check Google Maps reachability with a minimal geocoding request."""
    key = api_key or settings.google_maps_api_key
    if not key:
        return False
    try:
        client = GoogleMapsClient(api_key=key, max_retries=0, timeout=5.0, transport=transport)
        data = client._get_json("geocode", {"address": "Chicago, IL"})
        return data.get("status") in {"OK", "ZERO_RESULTS"}
    except (httpx.HTTPError, ConnectionError, ValueError):
        return False

"""Geospatial helper functions."""

from __future__ import annotations

import math

EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609.34


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in statute miles between two coordinates.

    Haversine form of the central angle; it agrees with the spherical law of
    cosines and stays accurate for stops a few metres apart.
    """

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def travel_minutes(distance_miles: float, speed_mph: float) -> float:
    """Estimate driving time in minutes at a constant average speed."""

    return distance_miles / speed_mph * 60.0


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE

"""Fuel/toll costing and vehicle suitability checks for sequenced routes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ...config import settings
from ...models.domain import Stop


@dataclass(slots=True)
class CostOptions:
    fuel_price_per_gallon: float = settings.fuel_price_per_gallon
    mpg: float = settings.miles_per_gallon
    include_tolls: bool = settings.include_tolls
    toll_rate_per_mile: float = settings.toll_rate_per_mile
    max_weight: Optional[float] = None
    max_height: Optional[float] = None


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def fuel_cost(distance_miles: float, fuel_price_per_gallon: float, mpg: float) -> float:
    return distance_miles / mpg * fuel_price_per_gallon


def check_suitability(
    weight: Optional[float],
    height: Optional[float],
    *,
    max_weight: float | None = None,
    max_height: float | None = None,
) -> str | None:
    """Return the reason a load cannot travel on standard highways, or None."""
    weight_limit = max_weight if max_weight is not None else settings.max_gross_weight_lbs
    height_limit = max_height if max_height is not None else settings.max_vehicle_height_ft
    if weight and weight > weight_limit:
        return f"Weight exceeds maximum allowed ({weight_limit:,.0f} lbs)"
    if height and height > height_limit:
        return f"Height exceeds maximum allowed ({height_limit:g} feet)"
    return None


def constraint_violations(stops: list[Stop], options: CostOptions) -> dict[str, str]:
    violations: dict[str, str] = {}
    for stop in stops:
        reason = check_suitability(stop.weight or options.max_weight, stop.height or options.max_height)
        if reason:
            violations[stop.id] = reason
    return violations

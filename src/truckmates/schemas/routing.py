"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class StopModel(BaseModel):
    id: str
    address: str = ""
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    priority: Optional[float] = Field(default=None, description="Higher is more urgent; clamped to [0, 100].")
    time_window_start: Optional[str] = None
    time_window_end: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0, description="Load weight in lbs.")
    height: Optional[float] = Field(default=None, ge=0, description="Load height in feet.")

    @model_validator(mode="after")
    def _address_or_coordinates(self) -> "StopModel":
        if (self.lat is None or self.lng is None) and not self.address.strip():
            raise ValueError("A stop needs either lat/lng or an address.")
        return self


class OptimizeOrderOptions(BaseModel):
    fuel_price_per_gallon: Optional[float] = Field(None, ge=0)
    mpg: Optional[float] = Field(None, gt=0)
    include_tolls: Optional[bool] = None
    max_weight: Optional[float] = Field(None, ge=0)
    max_height: Optional[float] = Field(None, ge=0)


class OptimizeOrderRequest(BaseModel):
    stops: List[StopModel]
    options: Optional[OptimizeOrderOptions] = None


class StopRankModel(BaseModel):
    id: str
    order: int


class OptimizeOrderResponse(BaseModel):
    optimized_order: List[StopRankModel]
    total_distance: float
    estimated_time: int
    used_external_api: bool
    total_fuel_cost: float
    total_toll_cost: float
    total_cost: float
    constraint_violations: Dict[str, str]


class RouteDistanceResponse(BaseModel):
    distance: float
    duration: float
    used_external_api: bool
    error: Optional[str] = None


class MultiStopOptimizationResponse(BaseModel):
    optimized: bool
    optimized_stops: Optional[List[StopRankModel]] = None
    distance: Optional[float] = None
    time: Optional[int] = None
    fuel_cost: Optional[float] = None
    toll_cost: Optional[float] = None
    total_cost: Optional[float] = None
    error: Optional[str] = None


class RouteSuggestion(BaseModel):
    route_id: str
    route_name: str
    distance: float
    efficiency: int


class RouteSuggestionsResponse(BaseModel):
    suggestions: List[RouteSuggestion]
    error: Optional[str] = None

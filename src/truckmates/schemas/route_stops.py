"""Route stop request/response schemas."""

from __future__ import annotations

from typing import Any, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Tagged result returned to page components: exactly one of data/error is set."""

    data: Optional[T] = None
    error: Optional[str] = None


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteStopFields(BaseModel):
    location_id: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    priority: Optional[Literal["high", "medium", "low"]] = None
    salesman_id: Optional[str] = None
    arrive_time: Optional[str] = None
    depart_time: Optional[str] = None
    service_time_minutes: Optional[int] = Field(None, ge=0)
    travel_time_minutes: Optional[int] = Field(None, ge=0)
    time_window_1_open: Optional[str] = None
    time_window_1_close: Optional[str] = None
    time_window_2_open: Optional[str] = None
    time_window_2_close: Optional[str] = None
    carts: Optional[int] = Field(None, ge=0)
    boxes: Optional[int] = Field(None, ge=0)
    pallets: Optional[int] = Field(None, ge=0)
    orders: Optional[int] = Field(None, ge=0)
    special_instructions: Optional[str] = None
    notes: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class RouteStopCreate(RouteStopFields):
    stop_number: int = Field(..., ge=1)
    location_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    stop_type: str = "delivery"
    quantity_type: Literal["delivery", "pickup"] = "delivery"


class RouteStopUpdate(RouteStopFields):
    stop_number: Optional[int] = Field(None, ge=1)
    location_name: Optional[str] = None
    address: Optional[str] = None
    stop_type: Optional[str] = None
    quantity_type: Optional[Literal["delivery", "pickup"]] = None
    status: Optional[str] = None
    actual_arrive_time: Optional[str] = None
    actual_depart_time: Optional[str] = None


class ReorderStopsRequest(BaseModel):
    stop_ids: List[str] = Field(..., min_length=1)


class RouteSummary(BaseModel):
    total_stops: int
    total_travel_time_minutes: int
    total_service_time_minutes: int
    total_distance: float
    total_carts: int
    total_boxes: int
    total_pallets: int
    total_orders: int
    delivery_carts: int
    delivery_boxes: int
    delivery_pallets: int
    delivery_orders: int
    pickup_carts: int
    pickup_boxes: int
    pickup_pallets: int
    pickup_orders: int


RouteStopRow = dict[str, Any]

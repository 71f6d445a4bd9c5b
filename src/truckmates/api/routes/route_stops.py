"""Route stop endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.route_stops import Envelope, ReorderStopsRequest, RouteStopCreate, RouteStopUpdate
from ...services import route_stops as stops_service
from ..deps import get_company_id

router = APIRouter(tags=["route-stops"])


@router.get("/routes/{route_id}/stops", response_model=Envelope, status_code=status.HTTP_200_OK)
def list_stops(route_id: str, company_id: str = Depends(get_company_id)) -> Envelope:
    return stops_service.get_route_stops(route_id, company_id=company_id)


@router.post("/routes/{route_id}/stops", response_model=Envelope, status_code=status.HTTP_200_OK)
def create_stop(route_id: str, payload: RouteStopCreate, company_id: str = Depends(get_company_id)) -> Envelope:
    return stops_service.create_route_stop(route_id, payload, company_id=company_id)


@router.post("/routes/{route_id}/stops/reorder", response_model=Envelope, status_code=status.HTTP_200_OK)
def reorder_stops(
    route_id: str, payload: ReorderStopsRequest, company_id: str = Depends(get_company_id)
) -> Envelope:
    return stops_service.reorder_route_stops(route_id, payload.stop_ids, company_id=company_id)


@router.get("/routes/{route_id}/summary", response_model=Envelope, status_code=status.HTTP_200_OK)
def route_summary(route_id: str, company_id: str = Depends(get_company_id)) -> Envelope:
    return stops_service.get_route_summary(route_id, company_id=company_id)


@router.patch("/route-stops/{stop_id}", response_model=Envelope, status_code=status.HTTP_200_OK)
def update_stop(stop_id: str, payload: RouteStopUpdate, company_id: str = Depends(get_company_id)) -> Envelope:
    return stops_service.update_route_stop(stop_id, payload, company_id=company_id)


@router.delete("/route-stops/{stop_id}", response_model=Envelope, status_code=status.HTTP_200_OK)
def delete_stop(stop_id: str, company_id: str = Depends(get_company_id)) -> Envelope:
    return stops_service.delete_route_stop(stop_id, company_id=company_id)

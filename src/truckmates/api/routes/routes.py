"""Routing endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...models.domain import Stop
from ...schemas.routing import (
    MultiStopOptimizationResponse,
    OptimizeOrderRequest,
    OptimizeOrderResponse,
    RouteDistanceResponse,
    RouteSuggestionsResponse,
)
from ...services.routing.costing import CostOptions
from ...services.routing.sequencer import optimize_route_order
from ...services.routing.service import (
    calculate_route_distance,
    get_route_suggestions,
    optimize_multi_stop_route,
)
from ..deps import get_company_id

router = APIRouter(prefix="/routes", tags=["routes"])


def _cost_options(payload: OptimizeOrderRequest) -> CostOptions:
    base = CostOptions()
    overrides = payload.options
    if overrides is None:
        return base
    return CostOptions(
        fuel_price_per_gallon=overrides.fuel_price_per_gallon
        if overrides.fuel_price_per_gallon is not None
        else base.fuel_price_per_gallon,
        mpg=overrides.mpg if overrides.mpg is not None else base.mpg,
        include_tolls=overrides.include_tolls if overrides.include_tolls is not None else base.include_tolls,
        toll_rate_per_mile=base.toll_rate_per_mile,
        max_weight=overrides.max_weight,
        max_height=overrides.max_height,
    )


@router.post("/optimize-order", response_model=OptimizeOrderResponse, status_code=status.HTTP_200_OK)
def optimize_order(payload: OptimizeOrderRequest) -> OptimizeOrderResponse:
    try:
        stops = [Stop(**stop.model_dump()) for stop in payload.stops]
        result = optimize_route_order(stops, options=_cost_options(payload))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing stop order: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize stop order: {str(exc)}",
        ) from exc
    return OptimizeOrderResponse.model_validate(asdict(result))


@router.get("/distance", response_model=RouteDistanceResponse, status_code=status.HTTP_200_OK)
def route_distance(
    origin: str = Query(..., min_length=1, description="Origin address"),
    destination: str = Query(..., min_length=1, description="Destination address"),
) -> RouteDistanceResponse:
    return RouteDistanceResponse.model_validate(asdict(calculate_route_distance(origin, destination)))


@router.get("/suggestions", response_model=RouteSuggestionsResponse, status_code=status.HTTP_200_OK)
def suggestions(
    load_ids: List[str] = Query(..., description="Load ids to match against existing routes"),
    company_id: str = Depends(get_company_id),
) -> RouteSuggestionsResponse:
    return get_route_suggestions(load_ids, company_id=company_id)


@router.post("/{route_id}/optimize", response_model=MultiStopOptimizationResponse, status_code=status.HTTP_200_OK)
def optimize_route(route_id: str, company_id: str = Depends(get_company_id)) -> MultiStopOptimizationResponse:
    result = optimize_multi_stop_route(route_id, company_id=company_id)
    return MultiStopOptimizationResponse.model_validate(asdict(result))

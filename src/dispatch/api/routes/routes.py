"""Route optimization endpoints."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, Response, status

from ...config import settings
from ...schemas.routing import OptimizedRouteModel, OptimizeRouteRequest
from ...services.outputs.route_formatter import route_to_map_overlay, route_to_sequence_csv
from ...services.routing.errors import (
    CorrelationError,
    NoAssignmentsError,
    NoGeocodedStopsError,
    ProviderError,
    StoreError,
)
from ...services.routing.service import RouteOptimizationService

router = APIRouter(prefix="/routes", tags=["routes"])


def _load_route(driver_id: str, route_date: date):
    try:
        route = RouteOptimizationService().get_route(driver_id, route_date)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if route is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No optimized route stored for driver {driver_id} on {route_date.isoformat()}",
        )
    return route


@router.post("/optimize", response_model=OptimizedRouteModel, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizeRouteRequest) -> OptimizedRouteModel:
    try:
        route = RouteOptimizationService().build_and_optimize(
            payload.driver_id, payload.route_date, force=payload.force
        )
        return OptimizedRouteModel.from_domain(route)
    except NoAssignmentsError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except NoGeocodedStopsError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Route optimization service error: {exc.message}",
        ) from exc
    except CorrelationError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not match the optimized sequence to the submitted stops: {exc}",
        ) from exc
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{exc} Please retry.",
        ) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing route for driver {payload.driver_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc


@router.get("/{driver_id}/{route_date}", response_model=OptimizedRouteModel, status_code=status.HTTP_200_OK)
def get_route(driver_id: str, route_date: date) -> OptimizedRouteModel:
    return OptimizedRouteModel.from_domain(_load_route(driver_id, route_date))


@router.get("/{driver_id}/{route_date}/map", status_code=status.HTTP_200_OK)
def get_route_map(driver_id: str, route_date: date) -> dict:
    """Markers and decoded path for rendering the route on a map."""
    route = _load_route(driver_id, route_date)
    overlay = route_to_map_overlay(
        route.ordered_stops,
        route.route_geometry,
        route.start_location,
        precision=settings.polyline_precision,
    )
    return {
        "driver_id": route.driver_id,
        "route_date": route.route_date.isoformat(),
        "total_duration_seconds": route.total_duration_seconds,
        "total_distance_meters": route.total_distance_meters,
        **overlay,
    }


@router.get("/{driver_id}/{route_date}/sequence.csv", status_code=status.HTTP_200_OK)
def get_route_sequence_csv(driver_id: str, route_date: date) -> Response:
    route = _load_route(driver_id, route_date)
    filename = f"route_{driver_id}_{route_date.isoformat()}.csv"
    return Response(
        content=route_to_sequence_csv(route),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/{driver_id}/{route_date}", status_code=status.HTTP_200_OK)
def delete_route(driver_id: str, route_date: date) -> dict:
    try:
        deleted = RouteOptimizationService().clear_route(driver_id, route_date)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No optimized route stored for driver {driver_id} on {route_date.isoformat()}",
        )
    return {"success": True, "message": f"Route for driver {driver_id} on {route_date.isoformat()} deleted"}

"""Driver assignment endpoints."""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from ...persistence.assignments import AssignmentRepository
from ...schemas.assignments import (
    AssignableOrderModel,
    AssignableOrdersResponse,
    AssignmentModel,
    AssignOrdersRequest,
    DeliveryScheduleModel,
    DriverModel,
    GeocodingSummaryModel,
    StatusUpdateRequest,
)
from ...services.assignment.service import assign_orders, assignable_orders, delivery_schedule, geocode_orders
from ...services.routing.errors import AssignmentConflictError, StoreError

router = APIRouter(prefix="/assignments", tags=["assignments"])


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("", response_model=List[AssignmentModel], status_code=status.HTTP_200_OK)
def list_assignments(assigned_date: date = Query(..., alias="date")) -> List[AssignmentModel]:
    try:
        return [AssignmentModel.from_domain(item) for item in AssignmentRepository().list_for_date(assigned_date)]
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.get("/drivers", response_model=List[DriverModel], status_code=status.HTTP_200_OK)
def drivers_with_assignments(assigned_date: date = Query(..., alias="date")) -> List[DriverModel]:
    """Active drivers holding at least one assignment on the date."""
    repository = AssignmentRepository()
    try:
        drivers = repository.active_drivers(repository.driver_ids_for_date(assigned_date))
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return [DriverModel(id=driver.id, full_name=driver.full_name) for driver in drivers]


@router.get("/assignable", response_model=AssignableOrdersResponse, status_code=status.HTTP_200_OK)
def list_assignable_orders(
    delivery_date: date = Query(..., alias="date"),
    city: str | None = Query(default=None, description="Only orders delivered to this city"),
) -> AssignableOrdersResponse:
    """Whether the date is open for deliveries, and the orders still to assign on it."""
    try:
        schedule = delivery_schedule(delivery_date)
        orders = assignable_orders(delivery_date, city=city, schedule=schedule)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return AssignableOrdersResponse(
        schedule=DeliveryScheduleModel.from_domain(schedule),
        orders=[AssignableOrderModel.from_domain(order) for order in orders],
    )


@router.post("", response_model=List[AssignmentModel], status_code=status.HTTP_201_CREATED)
def create_assignments(payload: AssignOrdersRequest) -> List[AssignmentModel]:
    try:
        created = assign_orders(payload.assigned_date, payload.staged, payload.driver_names)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AssignmentConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return [AssignmentModel.from_domain(item) for item in created]


@router.patch("/{assignment_id}/status", response_model=AssignmentModel, status_code=status.HTTP_200_OK)
def update_assignment_status(assignment_id: str, payload: StatusUpdateRequest) -> AssignmentModel:
    try:
        updated = AssignmentRepository().update_status(assignment_id, payload.status)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Assignment {assignment_id} not found")
    return AssignmentModel.from_domain(updated)


@router.post("/geocode", response_model=GeocodingSummaryModel, status_code=status.HTTP_200_OK)
def geocode_assignable_orders(
    delivery_date: date = Query(..., alias="date"),
    city: str | None = Query(default=None),
) -> GeocodingSummaryModel:
    """Geocode every assignable order for the date that has no stored coordinates."""
    try:
        summary = geocode_orders(assignable_orders(delivery_date, city=city))
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:
        logging.exception(f"Error geocoding orders for {delivery_date.isoformat()}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to geocode orders: {str(exc)}",
        ) from exc
    return GeocodingSummaryModel(
        geocoded=summary.geocoded,
        not_found=summary.not_found,
        skipped=summary.skipped,
        failed=summary.failed,
        already_geocoded=summary.already_geocoded,
    )

"""Driver assignment request/response schemas."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import AssignmentStatus, DeliverySchedule, DriverAssignment, Order


class AssignmentModel(BaseModel):
    id: Optional[str] = None
    order_id: str
    driver_id: str
    driver_name: Optional[str] = None
    assigned_date: date
    status: AssignmentStatus
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    full_delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    package_name: Optional[str] = None

    @classmethod
    def from_domain(cls, assignment: DriverAssignment) -> "AssignmentModel":
        return cls(
            id=assignment.id,
            order_id=assignment.order_id,
            driver_id=assignment.driver_id,
            driver_name=assignment.driver_name,
            assigned_date=assignment.assigned_date,
            status=assignment.status,
            customer_name=assignment.customer_name,
            customer_phone=assignment.customer_phone,
            full_delivery_address=assignment.full_delivery_address,
            delivery_city=assignment.delivery_city,
            package_name=assignment.package_name,
        )


class AssignableOrderModel(BaseModel):
    id: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    full_address: str
    delivery_city: Optional[str] = None
    package_name: Optional[str] = None
    delivery_start_date: Optional[date] = None
    delivery_end_date: Optional[date] = None

    @classmethod
    def from_domain(cls, order: Order) -> "AssignableOrderModel":
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            full_address=order.full_address(),
            delivery_city=order.delivery_city,
            package_name=order.package_name,
            delivery_start_date=order.delivery_start_date,
            delivery_end_date=order.delivery_end_date,
        )


class DriverModel(BaseModel):
    id: str
    full_name: Optional[str] = None


class AssignOrdersRequest(BaseModel):
    assigned_date: date
    staged: Dict[str, List[str]] = Field(..., description="Driver id -> order ids staged for that driver")
    driver_names: Optional[Dict[str, Optional[str]]] = None


class StatusUpdateRequest(BaseModel):
    status: AssignmentStatus


class GeocodingSummaryModel(BaseModel):
    geocoded: int
    not_found: int
    skipped: int
    failed: int
    already_geocoded: int


class DeliveryScheduleModel(BaseModel):
    event_date: date
    is_delivery_enabled: bool
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, schedule: DeliverySchedule) -> "DeliveryScheduleModel":
        return cls(
            event_date=schedule.event_date,
            is_delivery_enabled=schedule.is_delivery_enabled,
            notes=schedule.notes,
        )


class AssignableOrdersResponse(BaseModel):
    schedule: DeliveryScheduleModel
    orders: List[AssignableOrderModel]

"""Route optimization request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import DeliveryJob, OptimizedRoute


class OptimizeRouteRequest(BaseModel):
    driver_id: str = Field(..., min_length=1)
    route_date: date
    force: bool = Field(
        default=False,
        description="Recompute and overwrite when a route is already stored for this driver and date.",
    )


class DeliveryStopModel(BaseModel):
    sequence: int
    stop_id: str = Field(..., description="Driver assignment id")
    order_id: str
    coordinates: List[float] = Field(..., description="[longitude, latitude]")
    customer_name: Optional[str] = None
    full_address: Optional[str] = None
    package_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_job(cls, sequence: int, job: DeliveryJob) -> "DeliveryStopModel":
        return cls(
            sequence=sequence,
            stop_id=job.stop_id,
            order_id=job.order_id,
            coordinates=[job.coordinates.longitude, job.coordinates.latitude],
            customer_name=job.customer_name,
            full_address=job.full_address,
            package_name=job.package_name,
            phone=job.phone,
            city=job.city,
        )


class StartLocationModel(BaseModel):
    address: str
    coordinates: List[float] = Field(..., description="[longitude, latitude]")


class OptimizedRouteModel(BaseModel):
    driver_id: str
    driver_name: Optional[str] = None
    route_date: date
    start_location: StartLocationModel
    ordered_stops: List[DeliveryStopModel]
    route_geometry: Optional[str] = None
    total_duration_seconds: int
    total_distance_meters: int
    status: str
    optimized_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, route: OptimizedRoute) -> "OptimizedRouteModel":
        start = route.start_location
        return cls(
            driver_id=route.driver_id,
            driver_name=route.driver_name,
            route_date=route.route_date,
            start_location=StartLocationModel(
                address=start.address,
                coordinates=[start.coordinate.longitude, start.coordinate.latitude],
            ),
            ordered_stops=[
                DeliveryStopModel.from_job(sequence, job)
                for sequence, job in enumerate(route.ordered_stops, start=1)
            ],
            route_geometry=route.route_geometry,
            total_duration_seconds=route.total_duration_seconds,
            total_distance_meters=route.total_distance_meters,
            status=route.status,
            optimized_at=route.optimized_at,
        )

"""Domain models for orders, assignments and optimized routes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


@dataclass(slots=True, frozen=True)
class Coordinate:
    """A WGS84 point. Providers and storage use (longitude, latitude) order."""

    longitude: float
    latitude: float

    def as_lon_lat(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)

    def is_sentinel(self) -> bool:
        """(0, 0) marks an address that was never geocoded."""
        return self.latitude == 0 and self.longitude == 0

    def is_finite(self) -> bool:
        return math.isfinite(self.longitude) and math.isfinite(self.latitude)


@dataclass(slots=True)
class StartLocation:
    """Depot every route starts from."""

    address: str
    coordinate: Coordinate


@dataclass(slots=True)
class Order:
    """A customer's delivery commitment, read-only to the dispatch workflow."""

    id: str
    customer_name: Optional[str]
    customer_phone: Optional[str]
    delivery_address: Optional[str]
    delivery_city: Optional[str]
    delivery_postal_code: Optional[str]
    package_name: Optional[str]
    delivery_start_date: Optional[date] = None
    delivery_end_date: Optional[date] = None

    def full_address(self) -> str:
        parts = (self.delivery_address, self.delivery_city, self.delivery_postal_code)
        return ", ".join(part.strip() for part in parts if part and part.strip())

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Order":
        return cls(
            id=str(row["id"]),
            customer_name=row.get("user_full_name"),
            customer_phone=row.get("user_phone"),
            delivery_address=row.get("delivery_address"),
            delivery_city=row.get("delivery_city"),
            delivery_postal_code=row.get("delivery_postal_code"),
            package_name=row.get("package_name"),
            delivery_start_date=_parse_date(row.get("delivery_start_date")),
            delivery_end_date=_parse_date(row.get("delivery_end_date")),
        )


@dataclass(slots=True)
class Driver:
    id: str
    full_name: Optional[str]
    is_active: bool = True


@dataclass(slots=True)
class DeliverySchedule:
    """Whether deliveries run on a date. A date with no schedule row is closed."""

    event_date: date
    is_delivery_enabled: bool = False
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, event_date: date, row: dict[str, Any] | None) -> "DeliverySchedule":
        if row is None:
            return cls(
                event_date=event_date,
                is_delivery_enabled=False,
                notes="Delivery schedule not set for this date. Assuming closed.",
            )
        enabled = bool(row.get("is_delivery_enabled"))
        notes = row.get("notes") or ("Open for deliveries." if enabled else "Closed for deliveries.")
        return cls(event_date=event_date, is_delivery_enabled=enabled, notes=notes)


@dataclass(slots=True)
class GeocodedAddress:
    """Stored coordinates for one order's delivery address."""

    order_id: str
    latitude: float
    longitude: float
    full_address_text: Optional[str] = None
    provider: str = "mapbox"

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(longitude=self.longitude, latitude=self.latitude)


class AssignmentStatus(str, Enum):
    PENDING = "Pending"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    RESCHEDULED = "Rescheduled"


@dataclass(slots=True)
class DriverAssignment:
    """One order assigned to one driver for one calendar date.

    Display fields are copied from the order when the assignment is created so
    that routing and rendering never need to join back to ``orders``.
    """

    order_id: str
    driver_id: str
    assigned_date: date
    status: AssignmentStatus = AssignmentStatus.PENDING
    id: Optional[str] = None
    driver_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    full_delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    package_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DriverAssignment":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            order_id=str(row["order_id"]),
            driver_id=str(row["driver_id"]) if row.get("driver_id") is not None else "",
            assigned_date=_parse_date(row["assigned_date"]),
            status=AssignmentStatus(row.get("status") or AssignmentStatus.PENDING.value),
            driver_name=row.get("driver_name"),
            customer_name=row.get("customer_name"),
            customer_phone=row.get("customer_phone"),
            full_delivery_address=row.get("full_delivery_address"),
            delivery_city=row.get("delivery_city"),
            package_name=row.get("package_name"),
        )

    def to_row(self) -> dict[str, Any]:
        row = {
            "order_id": self.order_id,
            "driver_id": self.driver_id,
            "assigned_date": self.assigned_date.isoformat(),
            "status": self.status.value,
            "driver_name": self.driver_name,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "full_delivery_address": self.full_delivery_address,
            "delivery_city": self.delivery_city,
            "package_name": self.package_name,
        }
        if self.id is not None:
            row["id"] = self.id
        return row


@dataclass(slots=True)
class DeliveryJob:
    """A single stop travelling through one optimization round trip."""

    stop_id: str
    coordinates: Coordinate
    order_id: str
    customer_name: Optional[str] = None
    full_address: Optional[str] = None
    package_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_assignment(cls, assignment: DriverAssignment, coordinate: Coordinate) -> "DeliveryJob":
        if assignment.id is None:
            raise ValueError(f"Assignment for order {assignment.order_id} has no id")
        return cls(
            stop_id=assignment.id,
            coordinates=coordinate,
            order_id=assignment.order_id,
            customer_name=assignment.customer_name,
            full_address=assignment.full_delivery_address,
            package_name=assignment.package_name,
            phone=assignment.customer_phone,
            city=assignment.delivery_city,
        )

    def to_record(self) -> dict[str, Any]:
        """JSON shape stored in ``optimized_routes.ordered_stops``."""
        return {
            "id": self.stop_id,
            "coordinates": [self.coordinates.longitude, self.coordinates.latitude],
            "order_id": self.order_id,
            "customer_name": self.customer_name,
            "full_delivery_address": self.full_address,
            "package_name": self.package_name,
            "user_phone": self.phone,
            "delivery_city": self.city,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "DeliveryJob":
        lon, lat = record["coordinates"]
        return cls(
            stop_id=str(record["id"]),
            coordinates=Coordinate(longitude=float(lon), latitude=float(lat)),
            order_id=str(record["order_id"]),
            customer_name=record.get("customer_name"),
            full_address=record.get("full_delivery_address"),
            package_name=record.get("package_name"),
            phone=record.get("user_phone"),
            city=record.get("delivery_city"),
        )


@dataclass(slots=True)
class OptimizedRouteResult:
    ordered_jobs: list[DeliveryJob]
    route_geometry: str
    total_duration_seconds: int
    total_distance_meters: int


@dataclass(slots=True)
class OptimizedRoute:
    """The stored route for one (driver, date) key."""

    driver_id: str
    route_date: date
    start_location: StartLocation
    ordered_stops: list[DeliveryJob]
    route_geometry: Optional[str]
    total_duration_seconds: int
    total_distance_meters: int
    status: str = "generated"
    driver_name: Optional[str] = None
    optimized_at: Optional[datetime] = None
    id: Optional[str] = None

    def to_row(self) -> dict[str, Any]:
        return {
            "driver_id": self.driver_id,
            "driver_name": self.driver_name,
            "route_date": self.route_date.isoformat(),
            "start_address_text": self.start_location.address,
            "start_latitude": self.start_location.coordinate.latitude,
            "start_longitude": self.start_location.coordinate.longitude,
            "ordered_stops": [job.to_record() for job in self.ordered_stops],
            "route_geometry": self.route_geometry,
            "total_duration_seconds": self.total_duration_seconds,
            "total_distance_meters": self.total_distance_meters,
            "status": self.status,
            "optimized_at": self.optimized_at.isoformat() if self.optimized_at else None,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "OptimizedRoute":
        optimized_at = row.get("optimized_at")
        if isinstance(optimized_at, str):
            optimized_at = datetime.fromisoformat(optimized_at.replace("Z", "+00:00"))
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            driver_id=str(row["driver_id"]),
            driver_name=row.get("driver_name"),
            route_date=_parse_date(row["route_date"]),
            start_location=StartLocation(
                address=row.get("start_address_text") or "",
                coordinate=Coordinate(
                    longitude=float(row["start_longitude"]),
                    latitude=float(row["start_latitude"]),
                ),
            ),
            ordered_stops=[DeliveryJob.from_record(item) for item in row.get("ordered_stops") or []],
            route_geometry=row.get("route_geometry"),
            total_duration_seconds=int(row.get("total_duration_seconds") or 0),
            total_distance_meters=int(row.get("total_distance_meters") or 0),
            status=row.get("status") or "generated",
            optimized_at=optimized_at,
        )


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])

"""Daily assignment workflow: which orders each driver delivers on a date."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Sequence

from ...models.domain import AssignmentStatus, DeliverySchedule, DriverAssignment, GeocodedAddress, Order
from ...persistence.assignments import AssignmentRepository
from ...persistence.geocodes import GeocodeRepository
from ...persistence.orders import OrderRepository
from ...persistence.schedule import DeliveryScheduleRepository
from ..geocoding import MapboxGeocoder
from ..routing.errors import StoreError

logger = logging.getLogger(__name__)

GEOCODING_COUNTRY_SUFFIX = "Canada"


@dataclass(slots=True)
class GeocodingSummary:
    geocoded: int = 0
    not_found: int = 0
    skipped: int = 0
    failed: int = 0
    already_geocoded: int = 0


def delivery_schedule(delivery_date: date, schedules: DeliveryScheduleRepository | None = None) -> DeliverySchedule:
    return (schedules or DeliveryScheduleRepository()).for_date(delivery_date)


def assignable_orders(
    delivery_date: date,
    city: str | None = None,
    orders: OrderRepository | None = None,
    assignments: AssignmentRepository | None = None,
    schedule: DeliverySchedule | None = None,
    schedules: DeliveryScheduleRepository | None = None,
) -> list[Order]:
    """Orders due on ``delivery_date`` that no driver has been given yet.

    Nothing is assignable on a date closed for deliveries. Pass ``schedule``
    when the caller has already loaded it.
    """
    schedule = schedule or delivery_schedule(delivery_date, schedules)
    if not schedule.is_delivery_enabled:
        logger.info(f"Deliveries are closed on {delivery_date.isoformat()}; no assignable orders")
        return []
    orders = orders or OrderRepository()
    assignments = assignments or AssignmentRepository()
    already_assigned = {assignment.order_id for assignment in assignments.list_for_date(delivery_date)}
    due = orders.active_on(delivery_date, city=city)
    available = [order for order in due if order.id not in already_assigned]
    return sorted(available, key=lambda order: (order.customer_name or "").lower())


def assign_orders(
    delivery_date: date,
    staged: Mapping[str, Sequence[str]],
    driver_names: Mapping[str, str | None] | None = None,
    orders: OrderRepository | None = None,
    assignments: AssignmentRepository | None = None,
    schedules: DeliveryScheduleRepository | None = None,
) -> list[DriverAssignment]:
    """Partition orders among drivers for one date and persist the assignments.

    Args:
        delivery_date: Date the orders are delivered.
        staged: driver id -> order ids staged for that driver.
        driver_names: Optional driver id -> display name, copied onto each row.

    Raises:
        ValueError: Deliveries are closed on the date, an order is staged for
            more than one driver, or an order id does not exist.
        AssignmentConflictError: An order is already assigned on that date.
        StoreError: The schedule lookup or the insert failed.
    """
    orders = orders or OrderRepository()
    assignments = assignments or AssignmentRepository()
    driver_names = driver_names or {}

    schedule = delivery_schedule(delivery_date, schedules)
    if not schedule.is_delivery_enabled:
        raise ValueError(f"Deliveries are closed on {delivery_date.isoformat()}: {schedule.notes}")

    owner: dict[str, str] = {}
    for driver_id, order_ids in staged.items():
        for order_id in order_ids:
            if order_id in owner and owner[order_id] != driver_id:
                raise ValueError(
                    f"Order {order_id} is staged for both driver {owner[order_id]} and driver {driver_id}."
                )
            owner[order_id] = driver_id
    if not owner:
        raise ValueError("No orders are staged for assignment.")

    found = {order.id: order for order in orders.get_many(list(owner))}
    missing = [order_id for order_id in owner if order_id not in found]
    if missing:
        raise ValueError(f"Unknown order ids: {missing}")

    records = []
    for order_id, driver_id in owner.items():
        order = found[order_id]
        records.append(
            DriverAssignment(
                order_id=order.id,
                driver_id=driver_id,
                assigned_date=delivery_date,
                status=AssignmentStatus.PENDING,
                driver_name=driver_names.get(driver_id),
                customer_name=order.customer_name,
                customer_phone=order.customer_phone,
                full_delivery_address=order.full_address() or None,
                delivery_city=order.delivery_city,
                package_name=order.package_name,
            )
        )
    created = assignments.create_many(records)
    logger.info(f"Assigned {len(created)} orders across {len(staged)} drivers for {delivery_date.isoformat()}")
    return created


def geocoding_address(order: Order) -> str | None:
    """Address string sent to the geocoder, or None when there is too little to go on."""
    if not order.delivery_address or not order.delivery_address.strip():
        return None
    base = order.full_address()
    return f"{base}, {GEOCODING_COUNTRY_SUFFIX}"


def geocode_orders(
    orders_to_geocode: Sequence[Order],
    geocoder: MapboxGeocoder | None = None,
    geocodes: GeocodeRepository | None = None,
) -> GeocodingSummary:
    """Look up and store coordinates for orders that have none yet."""
    geocoder = geocoder or MapboxGeocoder()
    geocodes = geocodes or GeocodeRepository()
    summary = GeocodingSummary()

    known = geocodes.get_coordinates(order.id for order in orders_to_geocode)
    for order in orders_to_geocode:
        if order.id in known:
            summary.already_geocoded += 1
            continue
        address = geocoding_address(order)
        if address is None:
            logger.warning(f"Skipping geocoding for order {order.id} due to insufficient address parts.")
            summary.skipped += 1
            continue
        coordinate = geocoder.geocode(address)
        if coordinate is None:
            summary.not_found += 1
            continue
        try:
            geocodes.save(
                GeocodedAddress(
                    order_id=order.id,
                    latitude=coordinate.latitude,
                    longitude=coordinate.longitude,
                    full_address_text=address,
                    provider=geocoder.provider,
                )
            )
        except StoreError as exc:
            logger.error(f"Failed to save geocoded address for order {order.id}: {exc}")
            summary.failed += 1
            continue
        summary.geocoded += 1

    logger.info(
        f"Geocoding complete: {summary.geocoded} new, {summary.not_found} not found, "
        f"{summary.skipped} skipped, {summary.failed} failed to save"
    )
    return summary

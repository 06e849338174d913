"""Serializers that turn a stored route into map and sequence-list views."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ...models.domain import DeliveryJob, OptimizedRoute, StartLocation


def decode_polyline(polyline: str, precision: int = 6) -> list[tuple[float, float]]:
    """Decode an encoded polyline string to a list of (lat, lon) coordinates.

    The optimizer returns Google's polyline encoding at 6 decimal places
    (``polyline6``); pass ``precision=5`` for the classic format.
    """
    factor = 10 ** precision
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlat = ~(result >> 1) if (result & 1) else (result >> 1)
        lat += dlat

        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlon = ~(result >> 1) if (result & 1) else (result >> 1)
        lon += dlon

        coordinates.append((lat / factor, lon / factor))

    return coordinates


def route_to_map_overlay(
    ordered_stops: Sequence[DeliveryJob],
    route_geometry: str | None,
    start_location: StartLocation,
    precision: int = 6,
) -> dict:
    """Markers and path for one route. Coordinates are [lat, lon] pairs."""
    start = start_location.coordinate
    markers = [
        {
            "kind": "start",
            "sequence": 0,
            "label": start_location.address,
            "coordinates": [start.latitude, start.longitude],
        }
    ]
    for sequence, stop in enumerate(ordered_stops, start=1):
        markers.append(
            {
                "kind": "stop",
                "sequence": sequence,
                "stop_id": stop.stop_id,
                "order_id": stop.order_id,
                "label": stop.customer_name or stop.order_id,
                "address": stop.full_address,
                "coordinates": [stop.coordinates.latitude, stop.coordinates.longitude],
            }
        )

    if route_geometry:
        path = [[lat, lon] for lat, lon in decode_polyline(route_geometry, precision)]
    else:
        # No geometry stored: fall back to straight segments between markers.
        path = [marker["coordinates"] for marker in markers]

    return {"markers": markers, "path": path}


def route_to_sequence_csv(route: OptimizedRoute) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "driver_id",
        "route_date",
        "sequence",
        "stop_id",
        "order_id",
        "customer_name",
        "phone",
        "full_address",
        "city",
        "package_name",
        "longitude",
        "latitude",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for sequence, stop in enumerate(route.ordered_stops, start=1):
        writer.writerow(
            {
                "driver_id": route.driver_id,
                "route_date": route.route_date.isoformat(),
                "sequence": sequence,
                "stop_id": stop.stop_id,
                "order_id": stop.order_id,
                "customer_name": stop.customer_name,
                "phone": stop.phone,
                "full_address": stop.full_address,
                "city": stop.city,
                "package_name": stop.package_name,
                "longitude": stop.coordinates.longitude,
                "latitude": stop.coordinates.latitude,
            }
        )
    return buffer.getvalue()

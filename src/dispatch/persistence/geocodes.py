"""Access to stored order coordinates (``geocoded_addresses``)."""

from __future__ import annotations

from typing import Iterable

from ..models.domain import Coordinate, GeocodedAddress
from .base import SupabaseRepository


class GeocodeRepository(SupabaseRepository):
    TABLE = "geocoded_addresses"

    def get_coordinates(self, order_ids: Iterable[str]) -> dict[str, Coordinate]:
        """Map order id to its stored coordinate. Orders never geocoded are absent."""
        ids = list(dict.fromkeys(order_ids))
        if not ids:
            return {}
        rows = self.execute(
            self.table(self.TABLE).select("order_id, latitude, longitude").in_("order_id", ids),
            "load geocoded addresses",
        )
        coordinates: dict[str, Coordinate] = {}
        for row in rows:
            if row.get("latitude") is None or row.get("longitude") is None:
                continue
            coordinates[str(row["order_id"])] = Coordinate(
                longitude=float(row["longitude"]),
                latitude=float(row["latitude"]),
            )
        return coordinates

    def save(self, address: GeocodedAddress) -> None:
        self.execute(
            self.table(self.TABLE).insert(
                {
                    "order_id": address.order_id,
                    "full_address_text": address.full_address_text,
                    "latitude": address.latitude,
                    "longitude": address.longitude,
                    "geocoding_provider": address.provider,
                }
            ),
            f"save coordinates for order {address.order_id}",
        )

"""Read access to customer orders."""

from __future__ import annotations

from datetime import date

from ..models.domain import Order
from .base import SupabaseRepository

ORDER_COLUMNS = (
    "id, user_full_name, user_phone, delivery_address, delivery_city, delivery_postal_code, "
    "package_name, delivery_start_date, delivery_end_date"
)


class OrderRepository(SupabaseRepository):
    TABLE = "orders"

    def active_on(self, delivery_date: date, city: str | None = None) -> list[Order]:
        """Orders whose delivery window covers ``delivery_date``."""
        day = delivery_date.isoformat()
        query = (
            self.table(self.TABLE)
            .select(ORDER_COLUMNS)
            .lte("delivery_start_date", day)
            .gte("delivery_end_date", day)
        )
        if city:
            query = query.eq("delivery_city", city)
        rows = self.execute(query, f"load orders for {day}")
        return [Order.from_row(row) for row in rows]

    def get_many(self, order_ids: list[str]) -> list[Order]:
        if not order_ids:
            return []
        rows = self.execute(
            self.table(self.TABLE).select(ORDER_COLUMNS).in_("id", order_ids),
            "load orders",
        )
        return [Order.from_row(row) for row in rows]

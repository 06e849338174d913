"""Read access to the delivery calendar."""

from __future__ import annotations

from datetime import date

from ..models.domain import DeliverySchedule
from .base import SupabaseRepository


class DeliveryScheduleRepository(SupabaseRepository):
    TABLE = "delivery_schedule"

    def for_date(self, event_date: date) -> DeliverySchedule:
        day = event_date.isoformat()
        rows = self.execute(
            self.table(self.TABLE).select("event_date, is_delivery_enabled, notes").eq("event_date", day).limit(1),
            f"load delivery schedule for {day}",
        )
        return DeliverySchedule.from_row(event_date, rows[0] if rows else None)

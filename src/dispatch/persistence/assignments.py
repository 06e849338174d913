"""Access to driver assignments and the drivers they belong to."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from ..models.domain import AssignmentStatus, Driver, DriverAssignment
from ..services.routing.errors import AssignmentConflictError, StoreError
from .base import SupabaseRepository

logger = logging.getLogger(__name__)

ASSIGNMENT_COLUMNS = (
    "id, order_id, driver_id, assigned_date, status, driver_name, customer_name, "
    "customer_phone, full_delivery_address, delivery_city, package_name"
)


class AssignmentRepository(SupabaseRepository):
    """Reads and writes ``driver_assignments``.

    Uniqueness of (order_id, assigned_date) is enforced by the table; callers
    rely on it rather than re-checking.
    """

    TABLE = "driver_assignments"

    def get_pending(self, driver_id: str, assigned_date: date) -> list[DriverAssignment]:
        rows = self.execute(
            self.table(self.TABLE)
            .select(ASSIGNMENT_COLUMNS)
            .eq("driver_id", driver_id)
            .eq("assigned_date", assigned_date.isoformat())
            .eq("status", AssignmentStatus.PENDING.value),
            f"load pending assignments for driver {driver_id}",
        )
        return [DriverAssignment.from_row(row) for row in rows]

    def list_for_date(self, assigned_date: date) -> list[DriverAssignment]:
        rows = self.execute(
            self.table(self.TABLE).select(ASSIGNMENT_COLUMNS).eq("assigned_date", assigned_date.isoformat()),
            f"load assignments for {assigned_date.isoformat()}",
        )
        return [DriverAssignment.from_row(row) for row in rows]

    def driver_ids_for_date(self, assigned_date: date) -> list[str]:
        rows = self.execute(
            self.table(self.TABLE)
            .select("driver_id")
            .eq("assigned_date", assigned_date.isoformat())
            .not_.is_("driver_id", "null"),
            f"load drivers assigned on {assigned_date.isoformat()}",
        )
        return list(dict.fromkeys(str(row["driver_id"]) for row in rows if row.get("driver_id")))

    def active_drivers(self, driver_ids: Iterable[str]) -> list[Driver]:
        ids = list(driver_ids)
        if not ids:
            return []
        rows = self.execute(
            self.table("drivers").select("id, full_name, is_active").in_("id", ids).eq("is_active", True),
            "load active drivers",
        )
        return [
            Driver(id=str(row["id"]), full_name=row.get("full_name"), is_active=bool(row.get("is_active", True)))
            for row in rows
        ]

    def create_many(self, assignments: Sequence[DriverAssignment]) -> list[DriverAssignment]:
        if not assignments:
            return []
        try:
            rows = self.execute(
                self.table(self.TABLE).insert([assignment.to_row() for assignment in assignments]),
                f"create {len(assignments)} assignments",
            )
        except StoreError as exc:
            if "unique" in str(exc).lower() or "duplicate" in str(exc).lower():
                raise AssignmentConflictError(
                    "One or more orders were already assigned for this date. Please refresh."
                ) from exc
            raise
        logger.info(f"Created {len(rows)} driver assignments")
        return [DriverAssignment.from_row(row) for row in rows]

    def update_status(self, assignment_id: str, status: AssignmentStatus) -> DriverAssignment | None:
        rows = self.execute(
            self.table(self.TABLE).update({"status": status.value}).eq("id", assignment_id),
            f"update status of assignment {assignment_id}",
        )
        return DriverAssignment.from_row(rows[0]) if rows else None

"""Persistence of optimized routes, one row per (driver, date)."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from ..models.domain import OptimizedRoute, OptimizedRouteResult, StartLocation
from ..services.routing.errors import StoreError
from .base import SupabaseRepository

logger = logging.getLogger(__name__)

ROUTE_STATUS_GENERATED = "generated"


class OptimizedRouteStore(SupabaseRepository):
    """Upsert/read access to ``optimized_routes``.

    The table is unique on (driver_id, route_date). Re-optimizing replaces the
    row for that key; concurrent writers resolve as last-writer-wins.
    """

    TABLE = "optimized_routes"
    CONFLICT_KEY = "driver_id,route_date"

    def upsert(
        self,
        driver_id: str,
        route_date: date,
        result: OptimizedRouteResult,
        start_location: StartLocation,
        driver_name: str | None = None,
    ) -> OptimizedRoute:
        route = OptimizedRoute(
            driver_id=driver_id,
            driver_name=driver_name,
            route_date=route_date,
            start_location=start_location,
            ordered_stops=list(result.ordered_jobs),
            route_geometry=result.route_geometry,
            total_duration_seconds=result.total_duration_seconds,
            total_distance_meters=result.total_distance_meters,
            status=ROUTE_STATUS_GENERATED,
            optimized_at=datetime.now(timezone.utc),
        )
        rows = self.execute(
            self.table(self.TABLE).upsert(route.to_row(), on_conflict=self.CONFLICT_KEY),
            f"save optimized route for driver {driver_id} on {route_date.isoformat()}",
        )
        if not rows:
            raise StoreError(
                f"Optimized route for driver {driver_id} on {route_date.isoformat()} was not returned after save."
            )
        logger.info(
            f"Saved optimized route for driver {driver_id} on {route_date.isoformat()} "
            f"with {len(route.ordered_stops)} stops"
        )
        return OptimizedRoute.from_row(rows[0])

    def get(self, driver_id: str, route_date: date) -> OptimizedRoute | None:
        rows = self.execute(
            self.table(self.TABLE)
            .select("*")
            .eq("driver_id", driver_id)
            .eq("route_date", route_date.isoformat())
            .limit(1),
            f"load optimized route for driver {driver_id} on {route_date.isoformat()}",
        )
        return OptimizedRoute.from_row(rows[0]) if rows else None

    def delete(self, driver_id: str, route_date: date) -> bool:
        rows = self.execute(
            self.table(self.TABLE).delete().eq("driver_id", driver_id).eq("route_date", route_date.isoformat()),
            f"delete optimized route for driver {driver_id} on {route_date.isoformat()}",
        )
        return bool(rows)

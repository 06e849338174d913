"""Route assembly: pending assignments in, stored optimized route out."""

from __future__ import annotations

import logging
from datetime import date

from ...config import settings
from ...models.domain import (
    Coordinate,
    DeliveryJob,
    DriverAssignment,
    OptimizedRoute,
    StartLocation,
)
from ...persistence.assignments import AssignmentRepository
from ...persistence.geocodes import GeocodeRepository
from ...persistence.optimized_routes import OptimizedRouteStore
from .errors import NoAssignmentsError, NoGeocodedStopsError
from .optimization_client import RouteOptimizationClient

logger = logging.getLogger(__name__)


def default_start_location() -> StartLocation:
    return StartLocation(
        address=settings.depot_address,
        coordinate=Coordinate(longitude=settings.depot_longitude, latitude=settings.depot_latitude),
    )


def build_delivery_jobs(
    assignments: list[DriverAssignment],
    coordinates: dict[str, Coordinate],
) -> tuple[list[DeliveryJob], list[DriverAssignment]]:
    """Pair assignments with their coordinates, keeping assignment order.

    Returns the jobs and the assignments that were dropped because their order
    has no coordinate or only the (0, 0) never-geocoded sentinel.
    """
    jobs: list[DeliveryJob] = []
    dropped: list[DriverAssignment] = []
    for assignment in assignments:
        coordinate = coordinates.get(assignment.order_id)
        if coordinate is None or coordinate.is_sentinel() or not coordinate.is_finite():
            dropped.append(assignment)
            continue
        jobs.append(DeliveryJob.from_assignment(assignment, coordinate))
    return jobs, dropped


class RouteOptimizationService:
    """Orchestrates one driver-day optimization.

    Nothing here retries: optimization is an admin-triggered, idempotent action
    and every provider call counts against quota.
    """

    def __init__(
        self,
        assignments: AssignmentRepository | None = None,
        geocodes: GeocodeRepository | None = None,
        routes: OptimizedRouteStore | None = None,
        optimizer: RouteOptimizationClient | None = None,
        start_location: StartLocation | None = None,
    ) -> None:
        self.assignments = assignments or AssignmentRepository()
        self.geocodes = geocodes or GeocodeRepository()
        self.routes = routes or OptimizedRouteStore()
        self._optimizer = optimizer
        self.start_location = start_location or default_start_location()

    @property
    def optimizer(self) -> RouteOptimizationClient:
        if self._optimizer is None:
            self._optimizer = RouteOptimizationClient()
        return self._optimizer

    def get_route(self, driver_id: str, route_date: date) -> OptimizedRoute | None:
        return self.routes.get(driver_id, route_date)

    def build_and_optimize(self, driver_id: str, route_date: date, *, force: bool = False) -> OptimizedRoute:
        """Optimize the pending stops of ``driver_id`` on ``route_date`` and store the route.

        When a route is already stored for the key and ``force`` is false, the
        stored route is returned without calling the provider.

        Raises:
            NoAssignmentsError: Nothing is pending for the driver that day.
            NoGeocodedStopsError: No pending stop has usable coordinates.
            ProviderError, CorrelationError: Propagated from the optimizer.
            StoreError: Reading or writing the store failed.
        """
        day = route_date.isoformat()
        if not force:
            existing = self.routes.get(driver_id, route_date)
            if existing is not None:
                logger.info(f"Reusing stored route for driver {driver_id} on {day}")
                return existing

        pending = self.assignments.get_pending(driver_id, route_date)
        if not pending:
            raise NoAssignmentsError(driver_id, day)

        coordinates = self.geocodes.get_coordinates(assignment.order_id for assignment in pending)
        jobs, dropped = build_delivery_jobs(pending, coordinates)
        if dropped:
            logger.warning(
                f"Dropped {len(dropped)} of {len(pending)} assignments for driver {driver_id} on {day} "
                f"without coordinates: {[assignment.id for assignment in dropped]}"
            )
        if not jobs:
            raise NoGeocodedStopsError(driver_id, day, len(dropped))

        result = self.optimizer.optimize_route(self.start_location.coordinate, jobs)
        logger.info(
            f"Optimized {len(result.ordered_jobs)} stops for driver {driver_id} on {day}: "
            f"{result.total_distance_meters} m, {result.total_duration_seconds} s"
        )

        driver_name = next((assignment.driver_name for assignment in pending if assignment.driver_name), None)
        return self.routes.upsert(
            driver_id,
            route_date,
            result,
            self.start_location,
            driver_name=driver_name,
        )

    def clear_route(self, driver_id: str, route_date: date) -> bool:
        return self.routes.delete(driver_id, route_date)

"""Error taxonomy for the route optimization workflow."""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for errors reported to the admin as distinct outcomes."""


class NoAssignmentsError(DispatchError):
    """The driver has nothing pending on that date. Not a failure."""

    def __init__(self, driver_id: str, route_date: str) -> None:
        super().__init__(f"No pending assignments for driver {driver_id} on {route_date}.")
        self.driver_id = driver_id
        self.route_date = route_date


class NoGeocodedStopsError(DispatchError):
    """Every candidate stop lacks usable coordinates."""

    def __init__(self, driver_id: str, route_date: str, dropped: int) -> None:
        super().__init__(
            f"None of the {dropped} pending assignments for driver {driver_id} on {route_date} "
            "have geocoded coordinates. Geocode the addresses before optimizing."
        )
        self.driver_id = driver_id
        self.route_date = route_date
        self.dropped = dropped


class ProviderError(DispatchError):
    """The optimization service failed or was unreachable."""

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class CorrelationError(DispatchError):
    """The provider's waypoints could not be mapped back onto the submitted stops."""


class StoreError(DispatchError):
    """The persistence layer rejected or could not complete an operation."""


class AssignmentConflictError(StoreError):
    """An order already has an assignment on the requested date."""

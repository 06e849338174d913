"""HTTP client for the route optimization (optimize/trip) service."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinate, DeliveryJob, OptimizedRouteResult
from .errors import CorrelationError, ProviderError

logger = logging.getLogger(__name__)


class RouteOptimizationClient:
    """Submits a depot plus stops to the optimizer and maps the answer back onto the stops.

    Optimization requests are never retried here. Each call counts against the
    provider's quota and the admin re-triggers it manually when it fails.
    """

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        access_key: str | None = None,
        geometries: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.optimizer_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Route optimizer base URL is not configured.")
        self.profile = profile or settings.optimizer_profile
        self.access_key = access_key if access_key is not None else settings.optimizer_access_key
        self.geometries = geometries or settings.optimizer_geometries
        self.timeout = timeout if timeout is not None else settings.optimizer_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _build_params(self) -> dict[str, str]:
        params = {
            "roundtrip": "false",
            "source": "first",
            "destination": "last",
            "steps": "false",
            "geometries": self.geometries,
            "overview": "full",
            "annotations": "false",
        }
        if self.access_key:
            params["key"] = self.access_key
        return params

    def build_url(self, origin: Coordinate, stops: Sequence[DeliveryJob]) -> str:
        """Waypoint path: origin first, then every stop in input order."""
        waypoints = [origin, *(stop.coordinates for stop in stops)]
        coordinate_str = ";".join(f"{point.longitude},{point.latitude}" for point in waypoints)
        return f"{self.base_url}/{self.profile}/{coordinate_str}"

    def optimize_route(self, origin: Coordinate, stops: Sequence[DeliveryJob]) -> OptimizedRouteResult:
        """Optimize an open trip from ``origin`` through ``stops``.

        Args:
            origin: Depot coordinate, always the first waypoint.
            stops: Delivery jobs with finite coordinates. Their order must not
                change between this call and correlation.

        Returns:
            The original ``DeliveryJob`` objects in visiting order with the trip
            geometry and totals.

        Raises:
            ValueError: No stops, or a stop with non-finite coordinates.
            ProviderError: The optimizer failed, was unreachable or answered
                with something other than ``code == "Ok"``.
            CorrelationError: The optimizer's waypoints cannot be mapped back
                onto the stops.
        """
        if not stops:
            raise ValueError("At least one stop is required for route optimization.")
        if not origin.is_finite():
            raise ValueError("Route origin has non-finite coordinates.")
        for stop in stops:
            if not stop.coordinates.is_finite():
                raise ValueError(f"Stop {stop.stop_id} has non-finite coordinates.")

        stops = list(stops)
        url = self.build_url(origin, stops)
        logger.info(f"Requesting optimized trip for {len(stops)} stops from {self.base_url}")

        data = self._request(url)
        trip = data["trips"][0]
        ordered_jobs = correlate_waypoints(stops, data["waypoints"])

        return OptimizedRouteResult(
            ordered_jobs=ordered_jobs,
            route_geometry=trip.get("geometry") or "",
            total_duration_seconds=int(round(trip.get("duration") or 0)),
            total_distance_meters=int(round(trip.get("distance") or 0)),
        )

    def _request(self, url: str) -> dict[str, Any]:
        client = self._get_client()
        try:
            try:
                response = client.get(url, params=self._build_params())
            except httpx.TimeoutException as exc:
                logger.error(f"Route optimizer timed out: {exc}")
                raise ProviderError(f"Route optimization service timed out: {exc}") from exc
            except httpx.HTTPError as exc:
                logger.error(f"Route optimizer unreachable: {exc}")
                raise ProviderError(f"Route optimization service is unreachable: {exc}") from exc

            try:
                data = response.json()
            except ValueError:
                data = None

            if not response.is_success:
                message = _provider_message(data) or f"HTTP {response.status_code} {response.reason_phrase}"
                logger.error(f"Route optimizer returned HTTP {response.status_code}: {message}")
                raise ProviderError(
                    message,
                    code=data.get("code") if isinstance(data, dict) else None,
                    status_code=response.status_code,
                )
            if not isinstance(data, dict):
                raise ProviderError("Route optimization service returned an unreadable response.")

            code = data.get("code")
            if code != "Ok":
                message = _provider_message(data) or str(code or "Unknown optimizer error")
                logger.error(f"Route optimizer rejected request ({code}): {message}")
                raise ProviderError(message, code=code, status_code=response.status_code)
            if not data.get("trips"):
                raise ProviderError("Route optimization response contains no trips.", code=code)
            if not isinstance(data.get("waypoints"), list):
                raise ProviderError("Route optimization response contains no waypoints.", code=code)
            return data
        finally:
            client.close()


def correlate_waypoints(stops: Sequence[DeliveryJob], waypoints: Sequence[dict[str, Any]]) -> list[DeliveryJob]:
    """Place each input stop at the position the optimizer assigned to it.

    ``waypoints`` follow the request order: entry 0 is the origin and entry
    ``r`` is stop ``r - 1``. Each carries ``waypoint_index``, its position in
    the optimized trip, so the stop belongs at ``waypoint_index - 1``.
    Correlation never compares coordinates.
    """
    expected = len(stops) + 1
    if len(waypoints) != expected:
        raise CorrelationError(
            f"Optimizer returned {len(waypoints)} waypoints, expected {expected} "
            f"(origin plus {len(stops)} stops)."
        )

    slots: list[DeliveryJob | None] = [None] * len(stops)
    for position in range(1, len(waypoints)):
        waypoint = waypoints[position]
        stop = stops[position - 1]
        waypoint_index = waypoint.get("waypoint_index")
        if not isinstance(waypoint_index, int) or isinstance(waypoint_index, bool):
            logger.warning(f"Waypoint for stop {stop.stop_id} has no usable waypoint_index: {waypoint}")
            continue
        target = waypoint_index - 1
        if not 0 <= target < len(stops):
            logger.warning(
                f"Waypoint index {waypoint_index} for stop {stop.stop_id} is outside the trip "
                f"(1..{len(stops)}); stop left unplaced."
            )
            continue
        if slots[target] is not None:
            logger.warning(
                f"Waypoint index {waypoint_index} claimed by both {slots[target].stop_id} "
                f"and {stop.stop_id}; keeping the first."
            )
            continue
        slots[target] = stop

    ordered = [job for job in slots if job is not None]
    if len(ordered) != len(stops):
        logger.warning(
            f"Could not map all stops to the optimized sequence: expected {len(stops)}, mapped {len(ordered)}."
        )
        if not ordered:
            raise CorrelationError(
                f"None of the {len(stops)} stops could be mapped to the optimized sequence."
            )
    return ordered


def _provider_message(data: Any) -> str | None:
    if isinstance(data, dict):
        for key in ("message", "error"):
            value = data.get(key)
            if value:
                return str(value)
    return None


def check_health(base_url: str | None = None, access_key: str | None = None) -> bool:
    """Check optimizer reachability with a two-stop trip near the depot."""
    base = (base_url or settings.optimizer_base_url).rstrip("/")
    if not base:
        return False
    try:
        origin = f"{settings.depot_longitude},{settings.depot_latitude}"
        url = f"{base}/{settings.optimizer_profile}/{origin};-79.3832,43.6532"
        params = {"roundtrip": "false", "source": "first", "destination": "last", "overview": "false"}
        key = access_key or settings.optimizer_access_key
        if key:
            params["key"] = key
        response = httpx.get(url, params=params, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False

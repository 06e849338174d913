from datetime import date
from urllib.parse import unquote

import pytest

from src.dispatch.models.domain import Coordinate, StartLocation
from src.dispatch.persistence.assignments import AssignmentRepository
from src.dispatch.persistence.geocodes import GeocodeRepository
from src.dispatch.persistence.optimized_routes import OptimizedRouteStore
from src.dispatch.services.routing.errors import (
    NoAssignmentsError,
    NoGeocodedStopsError,
    ProviderError,
)
from src.dispatch.services.routing.optimization_client import RouteOptimizationClient
from src.dispatch.services.routing.service import RouteOptimizationService

ROUTE_DATE = date(2025, 6, 1)
DEPOT = StartLocation(
    address="817 Brimley Rd, Scarborough, ON M1J 1C9, Canada",
    coordinate=Coordinate(longitude=-79.2544, latitude=43.7530),
)


def _assignment(assignment_id: str, order_id: str, driver_id: str = "D1", status: str = "Pending") -> dict:
    return {
        "id": assignment_id,
        "order_id": order_id,
        "driver_id": driver_id,
        "driver_name": "Dana Driver",
        "assigned_date": ROUTE_DATE.isoformat(),
        "status": status,
        "customer_name": f"Customer {order_id}",
        "customer_phone": "416-555-0100",
        "full_delivery_address": f"{order_id} Queen St, Toronto, M4M 1A1",
        "delivery_city": "Toronto",
        "package_name": "Family Box",
    }


def _geocode(order_id: str, lon: float, lat: float) -> dict:
    return {"order_id": order_id, "longitude": lon, "latitude": lat}


@pytest.fixture
def seeded_db(fake_db):
    fake_db.tables["driver_assignments"] = [
        _assignment("A1", "O1"),
        _assignment("A2", "O2"),
        _assignment("A3", "O3"),
        _assignment("A4", "O4", status="Delivered"),
        _assignment("B1", "O5", driver_id="D2"),
    ]
    fake_db.tables["geocoded_addresses"] = [
        _geocode("O1", -79.30, 43.70),
        _geocode("O2", -79.28, 43.66),
        _geocode("O3", 0, 0),
        _geocode("O4", -79.33, 43.68),
        _geocode("O5", -79.31, 43.69),
    ]
    return fake_db


def _service(db, stub) -> RouteOptimizationService:
    return RouteOptimizationService(
        assignments=AssignmentRepository(db),
        geocodes=GeocodeRepository(db),
        routes=OptimizedRouteStore(db),
        optimizer=RouteOptimizationClient(base_url="https://optimizer.test/v1/optimize", transport=stub.transport),
        start_location=DEPOT,
    )


def _submitted_locations(stub) -> list[list[float]]:
    path = unquote(stub.requests[0].url.path)
    return [[float(part) for part in pair.split(",")] for pair in path.rsplit("/", 1)[-1].split(";")]


def test_end_to_end_drops_sentinel_and_reorders(seeded_db, optimizer_stub):
    # Provider visits A2 first, then A1: waypoints [origin:0, A1:2, A2:1].
    stub = optimizer_stub(visit_order=[1, 0])

    route = _service(seeded_db, stub).build_and_optimize("D1", ROUTE_DATE)

    assert _submitted_locations(stub) == [[-79.2544, 43.7530], [-79.30, 43.70], [-79.28, 43.66]]
    assert [stop.stop_id for stop in route.ordered_stops] == ["A2", "A1"]
    assert route.driver_id == "D1"
    assert route.driver_name == "Dana Driver"
    assert route.route_date == ROUTE_DATE
    assert route.status == "generated"
    assert route.start_location.coordinate == DEPOT.coordinate
    assert route.route_geometry == "_p~iF~ps|U_ulLnnqC"
    assert route.optimized_at is not None

    stored = seeded_db.tables["optimized_routes"]
    assert len(stored) == 1
    assert [stop["id"] for stop in stored[0]["ordered_stops"]] == ["A2", "A1"]
    first = stored[0]["ordered_stops"][0]
    assert first["customer_name"] == "Customer O2"
    assert first["full_delivery_address"] == "O2 Queen St, Toronto, M4M 1A1"
    assert first["coordinates"] == [-79.28, 43.66]


def test_sentinel_coordinate_is_never_submitted(seeded_db, optimizer_stub):
    stub = optimizer_stub()

    _service(seeded_db, stub).build_and_optimize("D1", ROUTE_DATE)

    assert [0.0, 0.0] not in _submitted_locations(stub)


def test_no_pending_assignments_signals_no_work(seeded_db, optimizer_stub):
    stub = optimizer_stub()

    with pytest.raises(NoAssignmentsError):
        _service(seeded_db, stub).build_and_optimize("D9", ROUTE_DATE)

    assert stub.requests == []
    assert not seeded_db.tables.get("optimized_routes")


def test_all_stops_without_coordinates_is_distinct_outcome(fake_db, optimizer_stub):
    fake_db.tables["driver_assignments"] = [_assignment("A1", "O1"), _assignment("A2", "O2")]
    fake_db.tables["geocoded_addresses"] = [_geocode("O2", 0, 0)]
    stub = optimizer_stub()

    with pytest.raises(NoGeocodedStopsError) as excinfo:
        _service(fake_db, stub).build_and_optimize("D1", ROUTE_DATE)

    assert excinfo.value.dropped == 2
    assert stub.requests == []


def test_stored_route_is_reused_unless_forced(seeded_db, optimizer_stub):
    first = optimizer_stub(visit_order=[1, 0])
    _service(seeded_db, first).build_and_optimize("D1", ROUTE_DATE)

    second = optimizer_stub(visit_order=[0, 1])
    cached = _service(seeded_db, second).build_and_optimize("D1", ROUTE_DATE)
    assert second.requests == []
    assert [stop.stop_id for stop in cached.ordered_stops] == ["A2", "A1"]

    recomputed = _service(seeded_db, second).build_and_optimize("D1", ROUTE_DATE, force=True)
    assert len(second.requests) == 1
    assert [stop.stop_id for stop in recomputed.ordered_stops] == ["A1", "A2"]
    assert len(seeded_db.tables["optimized_routes"]) == 1


def test_provider_failure_propagates_and_stores_nothing(seeded_db, optimizer_stub):
    stub = optimizer_stub(payload={"code": "InvalidInput", "message": "Too many coordinates"})

    with pytest.raises(ProviderError, match="Too many coordinates"):
        _service(seeded_db, stub).build_and_optimize("D1", ROUTE_DATE)

    assert len(stub.requests) == 1
    assert not seeded_db.tables.get("optimized_routes")

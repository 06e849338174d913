import copy
import itertools
from typing import Any
from urllib.parse import unquote

import httpx
import pytest
from postgrest.exceptions import APIError

UNIQUE_KEYS = {
    "optimized_routes": ("driver_id", "route_date"),
    "driver_assignments": ("order_id", "assigned_date"),
    "geocoded_addresses": ("order_id",),
}


class FakeResponse:
    def __init__(self, data: list[dict]) -> None:
        self.data = data


class FakeQuery:
    """Enough of the postgrest query builder for the repositories under test."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list = []
        self.row_limit: int | None = None
        self._negate = False

    # operations
    def select(self, *_columns, **_kwargs):
        self.operation = "select"
        return self

    def insert(self, rows):
        self.operation = "insert"
        self.payload = rows
        return self

    def upsert(self, rows, on_conflict: str | None = None, **_kwargs):
        self.operation = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        return self

    def update(self, values):
        self.operation = "update"
        self.payload = values
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # filters
    def _add(self, predicate):
        negate = self._negate
        self._negate = False
        self.filters.append((lambda row: not predicate(row)) if negate else predicate)
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row: row.get(column) in values)

    def lte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) <= value)

    def gte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row.get(column) >= value)

    def is_(self, column, value):
        if value == "null":
            return self._add(lambda row: row.get(column) is None)
        return self._add(lambda row: row.get(column) is value)

    def limit(self, count):
        self.row_limit = count
        return self

    def execute(self):
        self.db.calls.append((self.table_name, self.operation))
        if self.db.fail_with is not None:
            raise self.db.fail_with
        rows = self.db.tables.setdefault(self.table_name, [])
        matching = [row for row in rows if all(check(row) for check in self.filters)]

        if self.operation == "select":
            result = matching[: self.row_limit] if self.row_limit is not None else matching
            return FakeResponse(copy.deepcopy(result))
        if self.operation == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.insert_row(self.table_name, dict(row)) for row in payload]
            return FakeResponse(copy.deepcopy(inserted))
        if self.operation == "upsert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [key.strip() for key in (self.on_conflict or "id").split(",")]
            saved = [self.db.upsert_row(self.table_name, dict(row), keys) for row in payload]
            return FakeResponse(copy.deepcopy(saved))
        if self.operation == "update":
            for row in matching:
                row.update(self.payload)
            return FakeResponse(copy.deepcopy(matching))
        if self.operation == "delete":
            self.db.tables[self.table_name] = [row for row in rows if row not in matching]
            return FakeResponse(copy.deepcopy(matching))
        raise AssertionError(f"unsupported operation {self.operation}")


class FakeSupabase:
    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables: dict[str, list[dict]] = copy.deepcopy(tables or {})
        self.calls: list[tuple[str, str]] = []
        self.fail_with: Exception | None = None
        self._ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def _check_unique(self, table: str, row: dict) -> None:
        keys = UNIQUE_KEYS.get(table)
        if not keys:
            return
        for existing in self.tables.get(table, []):
            if all(existing.get(key) == row.get(key) for key in keys):
                raise APIError(
                    {
                        "message": f'duplicate key value violates unique constraint "{table}_unique"',
                        "code": "23505",
                        "hint": None,
                        "details": None,
                    }
                )

    def insert_row(self, table: str, row: dict) -> dict:
        self._check_unique(table, row)
        row.setdefault("id", f"{table}-{next(self._ids)}")
        self.tables.setdefault(table, []).append(row)
        return row

    def upsert_row(self, table: str, row: dict, keys: list[str]) -> dict:
        rows = self.tables.setdefault(table, [])
        for existing in rows:
            if all(existing.get(key) == row.get(key) for key in keys):
                row_id = existing.get("id")
                existing.clear()
                existing.update(row)
                existing.setdefault("id", row_id)
                return existing
        row.setdefault("id", f"{table}-{next(self._ids)}")
        rows.append(row)
        return row


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


class OptimizerStub:
    """httpx transport answering optimize requests with a chosen visiting order.

    ``visit_order`` lists input stop positions (0-based, origin excluded) in
    the order they should be visited. Defaults to the input order.
    """

    def __init__(self, visit_order: list[int] | None = None, payload: dict | None = None, status_code: int = 200):
        self.visit_order = visit_order
        self.payload = payload
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def waypoints_for(self, locations: list[list[float]]) -> list[dict]:
        stop_count = len(locations) - 1
        visit_order = self.visit_order if self.visit_order is not None else list(range(stop_count))
        waypoints = [{"waypoint_index": 0, "trips_index": 0, "location": locations[0]}]
        for position in range(stop_count):
            waypoints.append(
                {
                    "waypoint_index": visit_order.index(position) + 1,
                    "trips_index": 0,
                    # Providers snap locations to the road network.
                    "location": [locations[position + 1][0] + 0.00012, locations[position + 1][1] - 0.00007],
                }
            )
        return waypoints

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.payload is not None:
            return httpx.Response(self.status_code, json=self.payload)
        locations = request_locations(request)
        body = {
            "code": "Ok",
            "trips": [{"geometry": "_p~iF~ps|U_ulLnnqC", "duration": 1234.6, "distance": 9876.4, "legs": []}],
            "waypoints": self.waypoints_for(locations),
        }
        return httpx.Response(self.status_code, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def request_locations(request: httpx.Request) -> list[list[float]]:
    path = unquote(request.url.path)
    coordinate_str = path.rsplit("/", 1)[-1]
    return [[float(part) for part in pair.split(",")] for pair in coordinate_str.split(";")]


@pytest.fixture
def optimizer_stub():
    return OptimizerStub

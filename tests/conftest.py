import uuid
from types import SimpleNamespace

import pytest

from truckmates.config import settings
from truckmates.models.domain import Stop
from truckmates.services.routing.providers import DistanceEstimate, DistanceProvider, DistanceSource


class FakeAPIError(Exception):
    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_to = None

    def select(self, *columns, count=None):
        self.op = "select"
        return self

    def insert(self, values):
        self.op = "insert"
        self.payload = values
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column, values):
        self.filters.append(("in", column, list(values)))
        return self

    def contains(self, column, values):
        self.filters.append(("contains", column, list(values)))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.limit_to = count
        return self

    def _matches(self, row: dict) -> bool:
        for kind, column, value in self.filters:
            if kind == "eq" and row.get(column) != value:
                return False
            if kind == "in" and row.get(column) not in value:
                return False
            if kind == "contains" and not set(value) <= set(row.get(column) or []):
                return False
        return True

    def execute(self):
        self.db.calls.append((self.table, self.op, self.payload, list(self.filters)))
        failure = self.db.failures.get((self.table, self.op))
        if failure is not None:
            raise failure

        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            row = {"id": str(uuid.uuid4()), **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        matched = [row for row in rows if self._matches(row)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in matched])
        if self.op == "delete":
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return SimpleNamespace(data=[dict(row) for row in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: row.get(column), reverse=desc)
        if self.limit_to is not None:
            matched = matched[: self.limit_to]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeAuth:
    def __init__(self, tokens: dict[str, str]) -> None:
        self.tokens = tokens

    def get_user(self, token: str):
        if token not in self.tokens:
            raise PermissionError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[token]))


class FakeSupabase:
    """In-memory stand-in for the Supabase client's table query builder."""

    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.calls: list[tuple] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.auth = FakeAuth({})

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, op: str, error: Exception) -> None:
        self.failures[(table, op)] = error

    def writes(self, table: str | None = None) -> list[tuple]:
        return [
            call for call in self.calls
            if call[1] in {"insert", "update", "delete"} and (table is None or call[0] == table)
        ]


class MatrixProvider(DistanceProvider):
    """Symmetric mileage table keyed by stop id pairs; 50 mph durations."""

    name = "matrix"

    def __init__(self, miles: dict[tuple[str, str], float]) -> None:
        self.miles = miles
        self.lookups: list[tuple[str, str]] = []

    def estimate(self, origin: Stop, destination: Stop) -> DistanceEstimate | None:
        self.lookups.append((origin.id, destination.id))
        miles = self.miles.get((origin.id, destination.id), self.miles.get((destination.id, origin.id)))
        if miles is None:
            return None
        return DistanceEstimate(miles, miles / 50 * 60, self.name)


class FailingProvider(DistanceProvider):
    name = "failing"

    def estimate(self, origin: Stop, destination: Stop) -> DistanceEstimate | None:
        return None


def address_stop(stop_id: str, **kwargs) -> Stop:
    return Stop(id=stop_id, address=f"{stop_id} Main St, Springfield, IL", **kwargs)


def matrix_source(miles: dict[tuple[str, str], float]) -> DistanceSource:
    return DistanceSource([MatrixProvider(miles)])


@pytest.fixture(autouse=True)
def no_google_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "google_maps_api_key", None)
    monkeypatch.setattr(settings, "distance_max_parallel_requests", 1)


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase(
        {
            "users": [{"id": "user-1", "company_id": "company-1"}],
            "routes": [
                {
                    "id": "route-1",
                    "company_id": "company-1",
                    "name": "Chicago loop",
                    "origin": "Chicago, IL",
                    "destination": "Milwaukee, WI",
                    "distance": "92 miles",
                    "updated_at": "2026-10-01T08:00:00+00:00",
                },
                {
                    "id": "route-2",
                    "company_id": "company-2",
                    "name": "Other tenant",
                    "origin": "Chicago, IL",
                    "destination": "Detroit, MI",
                    "distance": "283 miles",
                    "updated_at": "2026-10-01T08:00:00+00:00",
                },
            ],
            "route_stops": [],
            "loads": [],
            "webhooks": [],
            "webhook_deliveries": [],
        }
    )

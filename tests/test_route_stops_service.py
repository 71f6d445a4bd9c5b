from conftest import FakeAPIError, FakeSupabase
from truckmates.persistence.routes import RouteRepository
from truckmates.schemas.route_stops import RouteStopCreate, RouteStopUpdate
from truckmates.services import route_stops as stops_service


def _repo(db: FakeSupabase) -> RouteRepository:
    return RouteRepository(db)


def _create_payload(**overrides) -> RouteStopCreate:
    values = {"stop_number": 1, "location_name": "Warehouse 4", "address": "1200 W Fulton St, Chicago, IL"}
    values.update(overrides)
    return RouteStopCreate(**values)


def test_create_stop_sets_tenant_and_defaults(fake_db: FakeSupabase):
    result = stops_service.create_route_stop(
        "route-1", _create_payload(phone=""), company_id="company-1", repository=_repo(fake_db)
    )

    assert result.error is None
    assert result.data["route_id"] == "route-1"
    assert result.data["company_id"] == "company-1"
    assert result.data["carts"] == 0
    assert result.data["phone"] is None
    assert result.data["quantity_type"] == "delivery"


def test_create_stop_on_foreign_route_is_rejected(fake_db: FakeSupabase):
    result = stops_service.create_route_stop(
        "route-2", _create_payload(), company_id="company-1", repository=_repo(fake_db)
    )

    assert result.data is None
    assert result.error == "Route not found"
    assert fake_db.writes() == []


def test_duplicate_stop_number_has_friendly_error(fake_db: FakeSupabase):
    fake_db.fail("route_stops", "insert", FakeAPIError("duplicate key value", "23505"))

    result = stops_service.create_route_stop(
        "route-1", _create_payload(), company_id="company-1", repository=_repo(fake_db)
    )

    assert result.error == "Stop number already exists for this route"


def test_list_stops_is_ordered_and_tenant_scoped(fake_db: FakeSupabase):
    fake_db.tables["route_stops"] = [
        {"id": "b", "route_id": "route-1", "company_id": "company-1", "stop_number": 2},
        {"id": "x", "route_id": "route-1", "company_id": "company-2", "stop_number": 1},
        {"id": "a", "route_id": "route-1", "company_id": "company-1", "stop_number": 1},
    ]

    result = stops_service.get_route_stops("route-1", company_id="company-1", repository=_repo(fake_db))

    assert [row["id"] for row in result.data] == ["a", "b"]


def test_missing_stops_table_reads_as_empty(fake_db: FakeSupabase):
    fake_db.fail("route_stops", "select", FakeAPIError('relation "route_stops" does not exist', "42P01"))

    result = stops_service.get_route_stops("route-1", company_id="company-1", repository=_repo(fake_db))

    assert result.data == []
    assert result.error is None


def test_update_only_sends_provided_fields(fake_db: FakeSupabase):
    fake_db.tables["route_stops"] = [
        {"id": "s1", "route_id": "route-1", "company_id": "company-1", "stop_number": 1, "notes": "old"}
    ]

    result = stops_service.update_route_stop(
        "s1", RouteStopUpdate(notes="Dock 3", priority="high"), company_id="company-1", repository=_repo(fake_db)
    )

    assert result.data["notes"] == "Dock 3"
    assert result.data["priority"] == "high"
    _, _, payload, _ = fake_db.writes("route_stops")[0]
    assert payload == {"notes": "Dock 3", "priority": "high"}


def test_update_unknown_stop(fake_db: FakeSupabase):
    result = stops_service.update_route_stop(
        "missing", RouteStopUpdate(notes="x"), company_id="company-1", repository=_repo(fake_db)
    )

    assert result.error == "Stop not found"


def test_update_without_fields_is_rejected(fake_db: FakeSupabase):
    result = stops_service.update_route_stop(
        "s1", RouteStopUpdate(), company_id="company-1", repository=_repo(fake_db)
    )

    assert result.error == "No fields to update"
    assert fake_db.calls == []


def test_delete_stop(fake_db: FakeSupabase):
    fake_db.tables["route_stops"] = [{"id": "s1", "route_id": "route-1", "company_id": "company-1"}]

    result = stops_service.delete_route_stop("s1", company_id="company-1", repository=_repo(fake_db))
    missing = stops_service.delete_route_stop("s1", company_id="company-1", repository=_repo(fake_db))

    assert result.data == {"success": True}
    assert fake_db.tables["route_stops"] == []
    assert missing.error == "Stop not found"


def test_reorder_renumbers_from_one(fake_db: FakeSupabase):
    fake_db.tables["route_stops"] = [
        {"id": sid, "route_id": "route-1", "company_id": "company-1", "stop_number": n}
        for n, sid in enumerate(["a", "b", "c"], start=1)
    ]

    result = stops_service.reorder_route_stops(
        "route-1", ["c", "a", "b"], company_id="company-1", repository=_repo(fake_db)
    )

    assert result.data == {"success": True}
    assert {row["id"]: row["stop_number"] for row in fake_db.tables["route_stops"]} == {"c": 1, "a": 2, "b": 3}


def test_reorder_rejects_duplicate_ids(fake_db: FakeSupabase):
    result = stops_service.reorder_route_stops(
        "route-1", ["a", "a"], company_id="company-1", repository=_repo(fake_db)
    )

    assert result.error == "Duplicate stop ids in new order"


def test_summary_totals_split_by_quantity_type(fake_db: FakeSupabase):
    fake_db.tables["route_stops"] = [
        {
            "id": "a", "route_id": "route-1", "company_id": "company-1", "stop_number": 1,
            "quantity_type": "delivery", "carts": 2, "boxes": 10, "pallets": 1, "orders": 3,
            "travel_time_minutes": 20, "service_time_minutes": 15,
            "coordinates": {"lat": 0.0, "lng": 0.0},
        },
        {
            "id": "b", "route_id": "route-1", "company_id": "company-1", "stop_number": 2,
            "quantity_type": "pickup", "carts": 1, "boxes": None, "pallets": 4, "orders": 1,
            "travel_time_minutes": 35, "service_time_minutes": None,
            "coordinates": {"lat": 0.0, "lng": 1.0},
        },
    ]

    result = stops_service.get_route_summary("route-1", company_id="company-1", repository=_repo(fake_db))
    summary = result.data

    assert summary.total_stops == 2
    assert summary.total_travel_time_minutes == 55
    assert summary.total_service_time_minutes == 15
    assert summary.total_carts == 3
    assert summary.delivery_boxes == 10
    assert summary.pickup_boxes == 0
    assert summary.pickup_pallets == 4
    assert summary.total_orders == 4
    assert summary.total_distance == 69.1


def test_stop_writes_bump_route_version(fake_db: FakeSupabase):
    original = fake_db.tables["routes"][0]["updated_at"]
    repository = _repo(fake_db)

    def route_version():
        return fake_db.tables["routes"][0]["updated_at"]

    created = stops_service.create_route_stop("route-1", _create_payload(), company_id="company-1", repository=repository)
    assert route_version() != original

    for step in (
        lambda: stops_service.update_route_stop(
            created.data["id"], RouteStopUpdate(notes="Dock 3"), company_id="company-1", repository=repository
        ),
        lambda: stops_service.reorder_route_stops(
            "route-1", [created.data["id"]], company_id="company-1", repository=repository
        ),
        lambda: stops_service.delete_route_stop(created.data["id"], company_id="company-1", repository=repository),
    ):
        fake_db.tables["routes"][0]["updated_at"] = original
        assert step().error is None
        assert route_version() != original

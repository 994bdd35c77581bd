from datetime import date

import pytest

from utils.constants import CacheKeys


def test_list_and_get_riders(rider_service):
    riders = rider_service.list_riders()
    assert [r.rider_id for r in riders] == ["R1", "R2", "R3"]
    assert riders[0].total_assignments == 4
    assert rider_service.get_rider("R2").name == "Bob Ray"
    assert rider_service.get_rider("r2") is None
    assert rider_service.find_rider_by_name("cid moe").rider_id == "R3"


def test_validate_rider_data(rider_service):
    errors = rider_service.validate_rider_data(
        {"rider_id": "", "name": "X", "phone": "12", "email": "bad", "status": "Gone"}
    )
    assert "Rider ID is required" in errors
    assert "Phone number must have 10 digits" in errors
    assert "Email address is not valid" in errors
    assert any(e.startswith("Status must be one of") for e in errors)
    assert rider_service.validate_rider_data({"email": "a@b.co"}, is_update=True) == []


def test_add_rider_appends_row_in_header_order(rider_service, store):
    rider = rider_service.add_rider(
        {"rider_id": "R9", "name": "Dee Fox", "phone": "(555) 000-1111", "status": "Active"}
    )
    assert rider.phone == "5550001111"
    assert store.sheets["Riders"][-1] == ["R9", "Dee Fox", "5550001111", "", "Active", 0, ""]


def test_add_rider_rejects_duplicate_id(rider_service):
    with pytest.raises(ValueError, match="already exists"):
        rider_service.add_rider({"rider_id": "R1", "name": "Again", "phone": "5551112222"})


def test_update_rider_writes_one_coalesced_range(rider_service, store):
    rider = rider_service.update_rider("R3", {"email": "cid@example.com", "status": "Vacation"})

    assert rider.status == "Vacation"
    assert store.calls_named("write_range") == [
        ("write_range", "Riders", 5, 4, 2, ["cid@example.com", "Vacation"])
    ]
    assert store.sheets["Riders"][4][3:5] == ["cid@example.com", "Vacation"]


def test_update_unknown_rider(rider_service):
    with pytest.raises(ValueError, match="not found"):
        rider_service.update_rider("R404", {"status": "Active"})


def test_bulk_update_status_flushes_once(rider_service, store, context):
    context.cache.set(CacheKeys.sheet("Riders"), "stale")

    assert rider_service.bulk_update_status(["R1", "R3"], "Training") == 2

    assert len(store.calls_named("write_cell")) == 2
    assert store.calls_named("flush") == [("flush",)]
    assert store.sheets["Riders"][1][4] == "Training"
    assert store.sheets["Riders"][4][4] == "Training"
    assert CacheKeys.sheet("Riders") not in context.cache


def test_bulk_update_rejects_unknown_status(rider_service):
    with pytest.raises(ValueError):
        rider_service.bulk_update_status(["R1"], "Retired")


def test_stats_writes_bump_total_and_last_date(rider_service, data_service):
    riders = data_service.get_riders_data(use_cache=False)
    writes = rider_service.stats_writes(riders, "ann lee", date(2025, 1, 11))
    assert [(w.row, w.col, w.value) for w in writes] == [(2, 6, 5), (2, 7, "01/11/2025")]
    assert rider_service.stats_writes(riders, "Nobody") == []


def test_list_active_riders(rider_service):
    assert [r.rider_id for r in rider_service.list_active_riders()] == ["R1", "R3"]

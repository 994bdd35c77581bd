from datetime import date, datetime

import services.data_service as data_module

from models.models import DashboardStats
from utils.constants import CacheKeys


def test_sheet_data_is_cached(data_service, store):
    first = data_service.get_requests_data()
    second = data_service.get_requests_data()
    assert first is second
    assert store.calls_named("read_all") == [("read_all", "Requests")]


def test_use_cache_false_always_reads(data_service, store):
    data_service.get_requests_data(use_cache=False)
    data_service.get_requests_data(use_cache=False)
    assert len(store.calls_named("read_all")) == 2


def test_store_failure_yields_empty_shapes(data_service, store):
    store.fail_reads = True
    requests = data_service.get_requests_data()
    assert requests.sheet_name == "Requests"
    assert requests.is_empty()
    assert len(data_service.get_rider_index()) == 0
    assert data_service.get_active_riders_count() == 0
    assert data_service.get_pending_requests() == []
    assert data_service.calculate_dashboard_statistics(date(2025, 1, 10)) == DashboardStats()


def test_missing_sheet_yields_empty_data(data_service):
    assert data_service.get_sheet_data("Nope").is_empty()


def test_rider_index_skips_blank_rows(data_service):
    index = data_service.get_rider_index()
    assert len(index) == 3
    assert set(index.by_id) == {"R1", "R2", "R3"}


def test_active_riders_count_counts_blank_and_active_status(data_service):
    assert data_service.get_active_riders_count() == 2


def test_active_riders_count_refreshes_after_riders_write(data_service, context):
    assert data_service.get_active_riders_count() == 2
    context.queue_write("Riders", 2, 5, "Inactive")
    context.flush()
    assert data_service.get_active_riders_count() == 1


def test_filtered_requests_depend_on_requests_sheet(data_service, context):
    assert len(data_service.get_requests_by_status("New")) == 1
    context.append_row("Requests", ["A-04-25", "", "", "", "", "", "", "", "", 1, "New"])
    assert len(data_service.get_requests_by_status("New")) == 2
    assert len(data_service.get_requests_by_status("All")) == 4


def test_pending_requests_include_assigned(data_service):
    ids = [row[0] for row in data_service.get_pending_requests()]
    assert ids == ["A-01-25", "A-02-25"]


def test_assignments_for_request_exclude_closed(data_service):
    rows = data_service.get_assignments_for_request("a-2-25")
    assert [row[0] for row in rows] == ["ASG-0001", "ASG-0002"]
    assert data_service.get_assignments_for_request("A-03-25") == []


def test_rider_assignments_for_date(data_service):
    rows = data_service.get_rider_assignments_for_date("Ann Lee", date(2025, 1, 11))
    assert [row[0] for row in rows] == ["ASG-0001"]


def test_dashboard_statistics(data_service):
    stats = data_service.calculate_dashboard_statistics(date(2025, 1, 11))
    assert stats.active_riders == 2
    assert stats.total_requests == 3
    assert stats.completed_requests == 1
    assert stats.pending_requests == 1
    assert stats.today_assignments == 2
    assert stats.week_assignments == 2


def test_dashboard_statistics_dropped_when_assignments_change(data_service, context):
    data_service.calculate_dashboard_statistics(date(2025, 1, 11))
    assert CacheKeys.DASHBOARD_STATS in context.cache
    context.append_row("Assignments", ["ASG-0004"])
    assert CacheKeys.DASHBOARD_STATS not in context.cache


def test_settings_tab_as_dict(data_service):
    assert data_service.get_settings() == {"Office Email": "dispatch@example.com"}


def test_clear_requests_cache(data_service, context):
    data_service.get_requests_by_status("New")
    data_service.clear_requests_cache()
    assert CacheKeys.filtered_requests("New") not in context.cache
    assert CacheKeys.sheet("Requests") not in context.cache


def test_failed_reads_are_not_cached_as_empty_results(data_service, store):
    store.fail_reads = True
    assert data_service.get_active_riders_count() == 0
    assert len(data_service.get_rider_index()) == 0
    assert data_service.get_requests_by_status("New") == []
    assert data_service.get_settings() == {}
    assert data_service.calculate_dashboard_statistics(date(2025, 1, 11)) == DashboardStats()

    store.fail_reads = False
    assert data_service.get_active_riders_count() == 2
    assert len(data_service.get_rider_index()) == 3
    assert len(data_service.get_requests_by_status("New")) == 1
    assert data_service.get_settings() == {"Office Email": "dispatch@example.com"}
    assert data_service.calculate_dashboard_statistics(date(2025, 1, 11)).active_riders == 2


def test_fresh_sheet_read_drops_values_derived_from_older_read(data_service, context, store):
    assert len(data_service.get_requests_by_status("New")) == 1
    store.sheets["Requests"][2][10] = "New"
    context.cache.invalidate(CacheKeys.sheet("Requests"))
    data_service.get_requests_data()
    assert CacheKeys.filtered_requests("New") not in context.cache
    assert len(data_service.get_requests_by_status("New")) == 2


def test_dashboard_defaults_to_local_today(data_service, monkeypatch):
    monkeypatch.setattr(data_module, "local_now", lambda tz: datetime(2025, 1, 11, 23, 30))
    assert data_service.calculate_dashboard_statistics().today_assignments == 2


def test_rider_schedule_for_the_week(data_service):
    schedule = data_service.get_rider_schedule(date(2025, 1, 10))
    assert len(schedule) == 7
    assert schedule[date(2025, 1, 10)] == []
    assert schedule[date(2025, 1, 11)] == ["Ann Lee", "Bob Ray"]
    assert schedule[date(2025, 1, 12)] == []

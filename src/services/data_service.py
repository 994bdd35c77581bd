import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from cache.context import DispatchContext
from cache.smart_cache import MISS
from clients.store import TabularStore
from config.config import SETTINGS
from models.models import DashboardStats, RiderIndex, SheetData, SheetSchema
from utils.constants import (
    ACTIVE_REQUEST_STATUSES,
    ACTIVE_RIDER_STATUSES,
    CLOSED_ASSIGNMENT_STATUSES,
    PENDING_REQUEST_STATUSES,
    CacheKeys,
)
from utils.formatting_utils import local_now, parse_date
from utils.lookup_utils import normalize_id, normalize_name
from utils.request_id_utils import normalize_request_id
from utils.sheet_utils import build_rider_index, extract_sheet_data

logger = logging.getLogger(__name__)


class SheetDataService:
    """Cached read access to the dispatch spreadsheet.

    Every read is best-effort: a failing store is logged and answered with
    the empty shape of the requested result, never with an exception.
    """

    def __init__(
        self, store: TabularStore, context: DispatchContext, schema: SheetSchema
    ):
        self.store = store
        self.context = context
        self.schema = schema

    @property
    def cache(self):
        return self.context.cache

    def _ttl(self, key: str) -> int:
        return self.schema.cache.ttl_for(key)

    def _cache_derived(
        self, key: str, value: Any, *sheet_names: str, complete: bool = True
    ) -> None:
        if not complete:
            logger.warning(f"Not caching {key}: a source tab could not be read")
            return
        self.cache.set(key, value, self._ttl(key))
        for sheet_name in sheet_names:
            self.cache.add_dependency(key, CacheKeys.sheet(sheet_name))

    def _read_sheet(self, sheet_name: str, use_cache: bool = True) -> Optional[SheetData]:
        """Like get_sheet_data, but None when the store could not be read."""
        key = CacheKeys.sheet(sheet_name)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not MISS:
                return cached
        try:
            values = self.store.read_all(sheet_name)
        except Exception:
            logger.exception(f"Error getting data from {sheet_name}")
            return None
        sheet_data = extract_sheet_data(sheet_name, values)
        if use_cache:
            # values derived from an earlier fetch of this tab are stale now
            self.context.invalidate_sheet(sheet_name)
            self.cache.set(key, sheet_data, self._ttl(key))
        return sheet_data

    def get_sheet_data(self, sheet_name: str, use_cache: bool = True) -> SheetData:
        """
        Fetch a whole tab as headers, data rows and a header -> offset map.

        Args:
            sheet_name (str): Name of the tab to read.
            use_cache (bool): Serve from and populate the cache. Writers pass
                False so they work on fresh rows.

        Returns:
            SheetData: The tab, or an empty SheetData if it could not be read.
        """
        sheet_data = self._read_sheet(sheet_name, use_cache)
        if sheet_data is None:
            return SheetData.empty(sheet_name)
        return sheet_data

    def get_requests_data(self, use_cache: bool = True) -> SheetData:
        return self.get_sheet_data(self.schema.sheets.requests, use_cache)

    def get_riders_data(self, use_cache: bool = True) -> SheetData:
        return self.get_sheet_data(self.schema.sheets.riders, use_cache)

    def get_assignments_data(self, use_cache: bool = True) -> SheetData:
        return self.get_sheet_data(self.schema.sheets.assignments, use_cache)

    def _load_rider_index(self, use_cache: bool = True) -> Optional[RiderIndex]:
        if use_cache:
            cached = self.cache.get(CacheKeys.RIDER_INDEX)
            if cached is not MISS:
                return cached
        sheet_name = self.schema.sheets.riders
        riders = self._read_sheet(sheet_name, use_cache)
        if riders is None:
            return None
        values = [riders.headers, *riders.data] if riders.headers else []
        index = build_rider_index(values, self.schema.columns.riders)
        if use_cache:
            self._cache_derived(CacheKeys.RIDER_INDEX, index, sheet_name)
        return index

    def get_rider_index(self, use_cache: bool = True) -> RiderIndex:
        index = self._load_rider_index(use_cache)
        return index if index is not None else RiderIndex()

    def get_requests_by_status(self, status: str = "All") -> List[List[Any]]:
        key = CacheKeys.filtered_requests(status)
        cached = self.cache.get(key)
        if cached is not MISS:
            return cached
        sheet_name = self.schema.sheets.requests
        source = self._read_sheet(sheet_name)
        requests = source if source is not None else SheetData.empty(sheet_name)
        status_col = self.schema.columns.requests.status
        if status == "All":
            rows = list(requests.data)
        else:
            rows = [
                row
                for row in requests.data
                if str(requests.value(row, status_col) or "").strip() == status
            ]
        self._cache_derived(key, rows, sheet_name, complete=source is not None)
        return rows

    def get_pending_requests(self) -> List[List[Any]]:
        requests = self.get_requests_data()
        status_col = self.schema.columns.requests.status
        return [
            row
            for row in requests.data
            if str(requests.value(row, status_col) or "").strip()
            in ACTIVE_REQUEST_STATUSES
        ]

    def get_assignments_for_request(self, request_id: str) -> List[List[Any]]:
        assignments = self.get_assignments_data()
        cols = self.schema.columns.assignments
        target = normalize_name(normalize_request_id(normalize_id(request_id)))
        return [
            row
            for row in assignments.data
            if normalize_name(
                normalize_request_id(normalize_id(assignments.value(row, cols.request_id)))
            )
            == target
            and str(assignments.value(row, cols.status) or "").strip()
            not in ("Completed", "Cancelled")
        ]

    def get_rider_assignments_for_date(self, rider_name: str, day: date) -> List[List[Any]]:
        assignments = self.get_assignments_data()
        cols = self.schema.columns.assignments
        return [
            row
            for row in assignments.data
            if normalize_id(assignments.value(row, cols.rider_name)) == normalize_id(rider_name)
            and parse_date(assignments.value(row, cols.event_date)) == day
            and str(assignments.value(row, cols.status) or "").strip()
            not in ("Completed", "Cancelled")
        ]

    def _is_active_rider(self, row: List[Any], index: RiderIndex) -> bool:
        offsets = index.offsets
        if offsets.name is None or offsets.name >= len(row):
            return False
        if not normalize_id(row[offsets.name]):
            return False
        if offsets.status is None:
            return True
        status = normalize_name(row[offsets.status] if offsets.status < len(row) else "")
        return not status or status in ACTIVE_RIDER_STATUSES

    def get_active_riders(self) -> List[List[Any]]:
        index = self.get_rider_index()
        return [row for row in index.riders if self._is_active_rider(row, index)]

    def _count_active_riders(self) -> Optional[int]:
        cached = self.cache.get(CacheKeys.ACTIVE_RIDERS_COUNT)
        if cached is not MISS:
            return cached
        try:
            index = self._load_rider_index()
            if index is None:
                return None
            count = sum(self._is_active_rider(row, index) for row in index.riders)
        except Exception:
            logger.exception("Error getting active riders count")
            return None
        self._cache_derived(
            CacheKeys.ACTIVE_RIDERS_COUNT, count, self.schema.sheets.riders
        )
        logger.info(f"Active riders count: {count}")
        return count

    def get_active_riders_count(self) -> int:
        count = self._count_active_riders()
        return count if count is not None else 0

    def calculate_dashboard_statistics(self, today: date | None = None) -> DashboardStats:
        """
        Headline numbers for the dashboard.

        Args:
            today (date): Day the "today" and "next 7 days" counts are taken
                from. Defaults to the current date in the configured timezone.

        Returns:
            DashboardStats: Computed or cached statistics. Figures from a tab
                that could not be read count as zero and are not cached.
        """
        today = today or local_now(SETTINGS.timezone).date()
        cached = self.cache.get(CacheKeys.DASHBOARD_STATS)
        if cached is not MISS and cached[0] == today:
            return cached[1]

        active_riders = self._count_active_riders()
        stats = DashboardStats(active_riders=active_riders or 0)

        sheets = self.schema.sheets
        requests_source = self._read_sheet(sheets.requests)
        requests = (
            requests_source
            if requests_source is not None
            else SheetData.empty(sheets.requests)
        )
        status_col = self.schema.columns.requests.status
        statuses = [str(requests.value(r, status_col) or "").strip() for r in requests.data]
        stats.total_requests = len(statuses)
        stats.completed_requests = statuses.count("Completed")
        stats.pending_requests = sum(s in PENDING_REQUEST_STATUSES for s in statuses)

        assignments_source = self._read_sheet(sheets.assignments)
        assignments = (
            assignments_source
            if assignments_source is not None
            else SheetData.empty(sheets.assignments)
        )
        cols = self.schema.columns.assignments
        week_end = today + timedelta(days=7)
        for row in assignments.data:
            rider = normalize_id(assignments.value(row, cols.rider_name))
            status = str(assignments.value(row, cols.status) or "").strip()
            if not rider or status in CLOSED_ASSIGNMENT_STATUSES:
                continue
            event_day = parse_date(assignments.value(row, cols.event_date))
            if event_day is None:
                continue
            if event_day == today:
                stats.today_assignments += 1
            if today <= event_day <= week_end:
                stats.week_assignments += 1

        self._cache_derived(
            CacheKeys.DASHBOARD_STATS,
            (today, stats),
            sheets.requests,
            sheets.riders,
            sheets.assignments,
            complete=all(
                source is not None
                for source in (active_riders, requests_source, assignments_source)
            ),
        )
        return stats

    def get_rider_schedule(self, start: date, days: int = 7) -> Dict[date, List[str]]:
        """Names of riders with an open assignment on each of the next `days` days."""
        schedule: Dict[date, List[str]] = {}
        cols = self.schema.columns.assignments
        assignments = self.get_assignments_data()
        names = sorted(
            {
                normalize_id(assignments.value(row, cols.rider_name))
                for row in assignments.data
                if normalize_id(assignments.value(row, cols.rider_name))
            },
            key=normalize_name,
        )
        for offset in range(days):
            day = start + timedelta(days=offset)
            schedule[day] = [
                name for name in names if self.get_rider_assignments_for_date(name, day)
            ]
        return schedule

    def get_settings(self) -> Dict[str, str]:
        cached = self.cache.get(CacheKeys.SETTINGS)
        if cached is not MISS:
            return cached
        sheet_name = self.schema.sheets.settings
        source = self._read_sheet(sheet_name)
        sheet = source if source is not None else SheetData.empty(sheet_name)
        cols = self.schema.columns.settings
        settings = {
            normalize_id(sheet.value(row, cols.key)): normalize_id(sheet.value(row, cols.value))
            for row in sheet.data
            if normalize_id(sheet.value(row, cols.key))
        }
        self._cache_derived(
            CacheKeys.SETTINGS, settings, sheet_name, complete=source is not None
        )
        return settings

    def clear_requests_cache(self) -> None:
        for status in ["All", *self.schema.options.request_statuses]:
            self.cache.invalidate(CacheKeys.filtered_requests(status))
        self.cache.invalidate(CacheKeys.sheet(self.schema.sheets.requests))
        logger.info("Requests cache cleared")

    def clear_dashboard_cache(self) -> None:
        for key in [
            CacheKeys.DASHBOARD_STATS,
            CacheKeys.sheet(self.schema.sheets.dashboard),
            CacheKeys.sheet(self.schema.sheets.riders),
            CacheKeys.sheet(self.schema.sheets.assignments),
            CacheKeys.sheet(self.schema.sheets.requests),
        ]:
            self.cache.invalidate_with_dependencies(key)
        logger.info("Dashboard cache cleared")

from typing import Any, Dict, List, Sequence

import pytest

from cache.context import DispatchContext
from cache.smart_cache import SmartDataCache
from clients.store import SheetNotFoundError
from models.models import SheetSchema
from services.data_service import SheetDataService
from services.request_service import RequestService
from services.rider_service import RiderService


class FakeStore:
    """In-memory tabular store that records every call it receives."""

    def __init__(self, sheets: Dict[str, List[List[Any]]] | None = None):
        self.sheets = {name: [list(r) for r in rows] for name, rows in (sheets or {}).items()}
        self.calls: List[tuple] = []
        self.fail_reads = False

    def _sheet(self, sheet_name: str) -> List[List[Any]]:
        if sheet_name not in self.sheets:
            raise SheetNotFoundError(sheet_name)
        return self.sheets[sheet_name]

    def _set(self, sheet_name: str, row: int, col: int, value: Any) -> None:
        rows = self._sheet(sheet_name)
        while len(rows) < row:
            rows.append([])
        target = rows[row - 1]
        if len(target) < col:
            target.extend([""] * (col - len(target)))
        target[col - 1] = value

    def read_all(self, sheet_name: str) -> List[List[Any]]:
        self.calls.append(("read_all", sheet_name))
        if self.fail_reads:
            raise ConnectionError("store unavailable")
        return [list(r) for r in self._sheet(sheet_name)]

    def read_range(self, sheet_name: str, range_spec: str) -> List[List[Any]]:
        self.calls.append(("read_range", sheet_name, range_spec))
        return [list(r) for r in self._sheet(sheet_name)]

    def write_cell(self, sheet_name: str, row: int, col: int, value: Any) -> None:
        self.calls.append(("write_cell", sheet_name, row, col, value))
        self._set(sheet_name, row, col, value)

    def write_range(
        self, sheet_name: str, row: int, col: int, width: int, values: Sequence[Any]
    ) -> None:
        self.calls.append(("write_range", sheet_name, row, col, width, list(values)))
        for offset, value in enumerate(values):
            self._set(sheet_name, row, col + offset, value)

    def append_row(self, sheet_name: str, values: Sequence[Any]) -> None:
        self.calls.append(("append_row", sheet_name, list(values)))
        self._sheet(sheet_name).append(list(values))

    def flush(self) -> None:
        self.calls.append(("flush",))

    def get_or_create_sheet(self, sheet_name: str, headers: Sequence[str]) -> None:
        self.calls.append(("get_or_create_sheet", sheet_name))
        self.sheets.setdefault(sheet_name, [list(headers)])

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


REQUEST_HEADERS = [
    "Request ID",
    "Date",
    "Requester Name",
    "Request Type",
    "Event Date",
    "Start Time",
    "End Time",
    "Start Location",
    "End Location",
    "Riders Needed",
    "Status",
    "Notes",
    "Riders Assigned",
    "Courtesy",
    "Last Updated",
]
RIDER_HEADERS = [
    "Rider ID",
    "Full Name",
    "Phone Number",
    "Email",
    "Status",
    "Total Assignments",
    "Last Assignment Date",
]
ASSIGNMENT_HEADERS = [
    "Assignment ID",
    "Request ID",
    "Event Date",
    "Start Time",
    "Rider Name",
    "JP Number",
    "Status",
    "Created Date",
]


@pytest.fixture
def sheets():
    return {
        "Requests": [
            REQUEST_HEADERS,
            ["A-01-25", "01/02/2025", "Smith Funeral Home", "Funeral", "01/10/2025",
             "9:00 AM", "11:00 AM", "Chapel", "Cemetery", 2, "New", "", "", "No", ""],
            ["A-02-25", "01/03/2025", "City Events", "VIP", "01/11/2025",
             "1:00 PM", "3:00 PM", "Airport", "Hotel", 3, "Assigned", "",
             "Ann Lee\nBob Ray", "No", ""],
            ["A-03-25", "01/04/2025", "Parade Co", "Float Movement", "01/12/2025",
             "8:00 AM", "", "Lot A", "Lot B", 1, "Completed", "", "Cid Moe", "No", ""],
        ],
        "Riders": [
            RIDER_HEADERS,
            ["R1", "Ann Lee", "5551112222", "ann@example.com", "Active", 4, ""],
            ["R2", "Bob Ray", "5553334444", "", "Inactive", "", ""],
            ["", "", "", "", "", "", ""],
            ["R3", "Cid Moe", "5556667777", "", "", 1, ""],
        ],
        "Assignments": [
            ASSIGNMENT_HEADERS,
            ["ASG-0001", "A-02-25", "01/11/2025", "1:00 PM", "Ann Lee", "R1", "Assigned", ""],
            ["ASG-0002", "A-02-25", "01/11/2025", "1:00 PM", "Bob Ray", "R2", "Confirmed", ""],
            ["ASG-0003", "A-03-25", "01/12/2025", "8:00 AM", "Cid Moe", "R3", "Completed", ""],
        ],
        "Settings": [["Setting", "Value"], ["Office Email", "dispatch@example.com"]],
    }


@pytest.fixture
def store(sheets):
    return FakeStore(sheets)


@pytest.fixture
def clock():
    now = [1000.0]

    def tick():
        return now[0]

    tick.now = now
    return tick


@pytest.fixture
def schema():
    return SheetSchema()


@pytest.fixture
def context(store, clock):
    return DispatchContext(store, cache=SmartDataCache(default_timeout=300, clock=clock))


@pytest.fixture
def data_service(store, context, schema):
    return SheetDataService(store, context, schema)


@pytest.fixture
def rider_service(context, data_service, schema):
    return RiderService(context, data_service, schema)


@pytest.fixture
def request_service(context, data_service, schema):
    return RequestService(context, data_service, schema)

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from batching.coalescer import PendingWrite
from cache.context import DispatchContext
from models.models import EscortRequest, SheetData, SheetSchema
from services.data_service import SheetDataService
from utils.constants import ACTIVITY_LOGGER
from utils.formatting_utils import parse_date, parse_time
from utils.lookup_utils import find_row, normalize_id, normalize_name, sheet_row_number
from utils.request_id_utils import generate_request_id, normalize_request_id
from utils.sheet_utils import blank_row, set_column_value

logger = logging.getLogger(__name__)
activity = logging.getLogger(ACTIVITY_LOGGER)

REQUIRED_FIELDS = [
    "requester_name",
    "event_date",
    "start_time",
    "start_location",
    "end_location",
    "type",
    "riders_needed",
]
# fields a form may change on an existing request
EDITABLE_FIELDS = [
    "requester_name",
    "requester_contact",
    "type",
    "event_date",
    "start_time",
    "end_time",
    "start_location",
    "end_location",
    "secondary_location",
    "riders_needed",
    "status",
    "courtesy",
    "requirements",
    "notes",
]
CLOSED_REQUEST_STATUSES = ["Completed", "Cancelled"]


def count_assigned_riders(assigned: Any) -> int:
    """Names in a Riders Assigned cell, split on commas and newlines, ``TBD`` ignored."""
    names = re.split(r"[\n,]", str(assigned or ""))
    return len([n for n in names if n.strip() and n.strip().lower() != "tbd"])


def _riders_needed(value: Any) -> int:
    try:
        needed = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number of riders needed: {value}")
    if needed <= 0:
        raise ValueError(f"Invalid number of riders needed: {value}. Must be positive.")
    return needed


def _courtesy(value: Any) -> str:
    return "Yes" if value is True or str(value).strip().lower() in ("yes", "true") else "No"


class RequestService:
    """Reads and writes rows of the Requests tab."""

    def __init__(
        self,
        context: DispatchContext,
        data_service: SheetDataService,
        schema: SheetSchema,
    ):
        self.context = context
        self.data_service = data_service
        self.schema = schema
        self.columns = schema.columns.requests
        self.sheet_name = schema.sheets.requests

    def _to_request(self, requests: SheetData, row: List[Any], position: int) -> EscortRequest:
        cols = self.columns
        def value(column: str) -> Any:
            return requests.value(row, column)

        try:
            needed = int(value(cols.riders_needed) or 0)
        except (TypeError, ValueError):
            needed = 0
        return EscortRequest(
            request_id=normalize_id(value(cols.id)),
            row_number=sheet_row_number(position),
            requester_name=normalize_id(value(cols.requester_name)),
            request_type=normalize_id(value(cols.type)),
            event_date=value(cols.event_date),
            start_time=value(cols.start_time),
            end_time=value(cols.end_time),
            start_location=normalize_id(value(cols.start_location)),
            end_location=normalize_id(value(cols.end_location)),
            secondary_location=normalize_id(value(cols.secondary_location)),
            riders_needed=needed,
            riders_assigned=normalize_id(value(cols.riders_assigned)),
            status=normalize_id(value(cols.status)),
            notes=normalize_id(value(cols.notes)),
        )

    def _listed(self, requests: SheetData, rows: List[List[Any]]) -> List[EscortRequest]:
        positions: Dict[str, int] = {}
        for position, row in enumerate(requests.data):
            positions.setdefault(normalize_id(requests.value(row, self.columns.id)), position)
        listed = []
        for row in rows:
            request_id = normalize_id(requests.value(row, self.columns.id))
            if request_id and request_id in positions:
                listed.append(self._to_request(requests, row, positions[request_id]))
        return listed

    def list_requests(self, status: str = "All") -> List[EscortRequest]:
        requests = self.data_service.get_requests_data()
        return self._listed(requests, self.data_service.get_requests_by_status(status))

    def list_open_requests(self) -> List[EscortRequest]:
        """New, Pending and Assigned requests."""
        requests = self.data_service.get_requests_data()
        return self._listed(requests, self.data_service.get_pending_requests())

    def _find(
        self, requests: SheetData, request_id: str
    ) -> Optional[Tuple[int, List[Any]]]:
        found = find_row(requests, self.columns.id, request_id)
        if found is not None or not normalize_id(request_id):
            return found
        # ids typed by hand may lack zero padding
        target = normalize_name(normalize_request_id(normalize_id(request_id)))
        for position, row in enumerate(requests.data):
            cell = normalize_request_id(normalize_id(requests.value(row, self.columns.id)))
            if normalize_name(cell) == target:
                return position, row
        return None

    def get_request(self, request_id: str, use_cache: bool = True) -> Optional[EscortRequest]:
        requests = self.data_service.get_requests_data(use_cache)
        found = self._find(requests, request_id)
        if found is None:
            return None
        position, row = found
        return self._to_request(requests, row, position)

    def create_request(self, fields: Dict[str, Any], now: datetime | None = None) -> str:
        """
        Append a new request row with a freshly generated id.

        Args:
            fields (Dict[str, Any]): Values keyed by ``RequestColumns`` field names.
            now (datetime | None): Submission time, defaults to the current time.

        Returns:
            str: The generated request id.

        Raises:
            ValueError: If a required field is missing or invalid.
        """
        now = now or datetime.now()
        for field in REQUIRED_FIELDS:
            if fields.get(field) in (None, ""):
                raise ValueError(f"Missing required field: {getattr(self.columns, field)}")
        riders_needed = _riders_needed(fields["riders_needed"])

        requests = self.data_service.get_requests_data(use_cache=False)
        if not requests.column_map:
            raise ValueError(f"{self.sheet_name} sheet has no header row")
        existing = [requests.value(row, self.columns.id) for row in requests.data]
        request_id = generate_request_id(existing, now)

        values = {field: fields.get(field, "") for field in EDITABLE_FIELDS}
        values.update(
            id=request_id,
            date=now,
            event_date=parse_date(fields["event_date"]) or fields["event_date"],
            start_time=fields["start_time"],
            riders_needed=riders_needed,
            status="New",
            riders_assigned="",
            courtesy=_courtesy(fields.get("courtesy", "No")),
            last_updated=now,
        )
        row = blank_row(requests.column_map)
        for field, value in values.items():
            set_column_value(row, requests.column_map, getattr(self.columns, field), value)
        self.context.append_row(self.sheet_name, row)
        activity.info(f"New request {request_id} created for {fields['requester_name']}")
        return request_id

    def build_updates(
        self, requests: SheetData, row_number: int, fields: Dict[str, Any], now: datetime
    ) -> List[PendingWrite]:
        """Turn editable form fields into cell writes for one request row."""
        updates = []
        for field, value in fields.items():
            if field not in EDITABLE_FIELDS:
                logger.warning(f"Ignoring non-editable request field {field}")
                continue
            column = getattr(self.columns, field)
            idx = requests.index_of(column)
            if idx is None:
                continue
            if field == "event_date" and value:
                parsed = parse_date(value)
                if parsed is None:
                    logger.warning(f"Invalid date provided for {field}: {value}")
                    continue
                value = parsed
            elif field in ("start_time", "end_time") and value:
                if parse_time(value) is None:
                    logger.warning(f"Invalid time provided for {field}: {value}")
                    continue
            elif field == "riders_needed" and value is not None:
                value = _riders_needed(value)
            elif field == "courtesy":
                value = _courtesy(value)
            updates.append(PendingWrite(row_number, idx + 1, value))

        idx = requests.index_of(self.columns.last_updated)
        if idx is not None:
            updates.append(PendingWrite(row_number, idx + 1, now))
        return updates

    def update_request(
        self, request_id: str, fields: Dict[str, Any], now: datetime | None = None
    ) -> int:
        requests = self.data_service.get_requests_data(use_cache=False)
        found = self._find(requests, request_id)
        if found is None:
            raise ValueError(f'Request with ID "{request_id}" not found.')
        position, _ = found
        updates = self.build_updates(
            requests, sheet_row_number(position), fields, now or datetime.now()
        )
        self.context.apply_updates(self.sheet_name, updates)
        self.data_service.clear_requests_cache()
        activity.info(f"Request updated: {request_id} - Updated {len(updates)} fields")
        return len(updates)

    def update_status(self, request_id: str, status: str) -> None:
        if status not in self.schema.options.request_statuses:
            raise ValueError(f"Unknown request status: {status}")
        self.update_request(request_id, {"status": status})

    def status_for_riders(self, riders_needed: int, assigned: Any) -> str:
        count = count_assigned_riders(assigned)
        if count == 0 or count < riders_needed:
            return "Unassigned"
        return "Assigned"

    def update_status_based_on_riders(self, request_id: str) -> Optional[str]:
        request = self.get_request(request_id, use_cache=False)
        if request is None:
            logger.error(f"Request ID {request_id} not found for status check")
            return None
        if request.status in CLOSED_REQUEST_STATUSES:
            return request.status
        status = self.status_for_riders(request.riders_needed, request.riders_assigned)
        self.update_status(request.request_id, status)
        activity.info(
            f"Status set for request {request.request_id} to {status} after rider check."
        )
        return status

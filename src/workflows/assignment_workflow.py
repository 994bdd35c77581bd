import logging
from datetime import datetime
from typing import Any, Dict, List, Tuple

from cache.context import DispatchContext
from models.models import (
    AssignmentInput,
    AssignmentResult,
    EscortRequest,
    SelectedRider,
    SheetData,
)
from services.data_service import SheetDataService
from services.request_service import RequestService
from services.rider_service import RiderService
from utils.constants import ACTIVITY_LOGGER, CLOSED_ASSIGNMENT_STATUSES
from utils.lookup_utils import normalize_id, normalize_name, sheet_row_number
from utils.request_id_utils import generate_assignment_id, normalize_request_id
from utils.sheet_utils import blank_row, set_column_value
from workflows.workflow import Workflow

logger = logging.getLogger(__name__)
activity = logging.getLogger(ACTIVITY_LOGGER)


class AssignmentWorkflow(Workflow):
    """
    Bring a request's assignments in line with the riders picked for it.

    Riders dropped from the selection get their open assignment cancelled, new
    riders get an assignment row, and the request's Riders Assigned, Status and
    Last Updated cells are rewritten. Cell writes across all tabs are buffered
    in the context and flushed once at the end.
    """

    def __init__(
        self,
        context: DispatchContext,
        data_service: SheetDataService,
        request_service: RequestService,
        rider_service: RiderService,
    ):
        self.context = context
        self.data_service = data_service
        self.request_service = request_service
        self.rider_service = rider_service
        self.schema = data_service.schema

    def _coerce_input(self, input: Any) -> AssignmentInput:
        """
        Validate and coerce the input to AssignmentInput.

        Raises:
            ValueError: If input is invalid.
        """
        if not isinstance(input, dict):
            raise ValueError("Input must be a dict")
        request_id = normalize_id(input.get("request_id")).strip('"')
        if not request_id:
            raise ValueError("request_id is required")
        riders = input.get("riders") or []
        if not isinstance(riders, list):
            raise ValueError("riders must be a list")
        selected: List[SelectedRider] = []
        seen = set()
        for rider in riders:
            if isinstance(rider, str):
                rider = SelectedRider(name=rider)
            elif isinstance(rider, dict):
                rider = SelectedRider(**rider)
            name = normalize_id(rider.name)
            if not name:
                raise ValueError("Every selected rider needs a name")
            if normalize_name(name) in seen:
                continue
            seen.add(normalize_name(name))
            selected.append(SelectedRider(name=name, rider_id=normalize_id(rider.rider_id)))
        return AssignmentInput(request_id=normalize_request_id(request_id), riders=selected)

    def _load_request(self, request_id: str) -> EscortRequest:
        request = self.request_service.get_request(request_id, use_cache=False)
        if request is None:
            raise ValueError(f'Request ID "{request_id}" not found.')
        return request

    def _check_capacity(self, request: EscortRequest, riders: List[SelectedRider]) -> None:
        limit = self.schema.options.max_riders_per_request
        if len(riders) > limit:
            raise ValueError(f"A request can take at most {limit} riders")
        if request.riders_needed and len(riders) > request.riders_needed:
            raise ValueError(
                f"{len(riders)} riders selected but request {request.request_id} "
                f"needs {request.riders_needed}"
            )

    def _open_assignments(
        self, assignments: SheetData, request_id: str
    ) -> Dict[str, Tuple[int, str]]:
        """Normalised rider name -> (sheet row, rider name) of each open assignment."""
        cols = self.schema.columns.assignments
        target = normalize_name(request_id)
        open_rows = {}
        for position, row in enumerate(assignments.data):
            row_request = normalize_request_id(normalize_id(assignments.value(row, cols.request_id)))
            status = normalize_id(assignments.value(row, cols.status))
            name = normalize_id(assignments.value(row, cols.rider_name))
            if normalize_name(row_request) != target or not name:
                continue
            if status in CLOSED_ASSIGNMENT_STATUSES:
                continue
            open_rows.setdefault(normalize_name(name), (sheet_row_number(position), name))
        return open_rows

    def _cancel(self, assignments: SheetData, rows: List[int]) -> None:
        status_idx = assignments.index_of(self.schema.columns.assignments.status)
        if status_idx is None:
            raise ValueError("Assignments sheet has no status column")
        for row_number in rows:
            self.context.queue_write(
                self.schema.sheets.assignments, row_number, status_idx + 1, "Cancelled"
            )

    def _append_assignments(
        self,
        assignments: SheetData,
        request: EscortRequest,
        riders: List[SelectedRider],
        now: datetime,
    ) -> List[str]:
        cols = self.schema.columns.assignments
        existing = [assignments.value(row, cols.id) for row in assignments.data]
        created = []
        for rider in riders:
            assignment_id = generate_assignment_id(existing + created)
            row = blank_row(assignments.column_map)
            for column, value in [
                (cols.id, assignment_id),
                (cols.request_id, request.request_id),
                (cols.event_date, request.event_date),
                (cols.start_time, request.start_time),
                (cols.end_time, request.end_time),
                (cols.start_location, request.start_location),
                (cols.end_location, request.end_location),
                (cols.secondary_location, request.secondary_location),
                (cols.rider_name, rider.name),
                (cols.rider_id, rider.rider_id),
                (cols.status, "Assigned"),
                (cols.created_date, now),
            ]:
                set_column_value(row, assignments.column_map, column, value)
            self.context.append_row(self.schema.sheets.assignments, row)
            created.append(assignment_id)
            activity.info(
                f"Created assignment {assignment_id} for {rider.name} on request {request.request_id}"
            )
        return created

    def _queue_request_update(
        self, request: EscortRequest, riders: List[SelectedRider], status: str, now: datetime
    ) -> None:
        requests = self.data_service.get_requests_data(use_cache=False)
        updates = self.request_service.build_updates(
            requests, request.row_number, {"status": status}, now
        )
        assigned_idx = requests.index_of(self.schema.columns.requests.riders_assigned)
        if assigned_idx is not None:
            self.context.queue_write(
                self.schema.sheets.requests,
                request.row_number,
                assigned_idx + 1,
                "\n".join(r.name for r in riders),
            )
        for update in updates:
            self.context.queue_write(
                self.schema.sheets.requests, update.row, update.col, update.value
            )

    def _queue_rider_stats(self, names: List[str], now: datetime) -> List[str]:
        riders = self.data_service.get_riders_data(use_cache=False)
        missing = []
        for name in names:
            writes = self.rider_service.stats_writes(riders, name, now)
            if not writes:
                missing.append(name)
            for write in writes:
                self.context.queue_write(
                    self.schema.sheets.riders, write.row, write.col, write.value
                )
        return missing

    def run(self, input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run the assignment workflow.

        Args:
            input (Dict[str, Any]): ``request_id`` and ``riders``, each rider a
                name or a dict with ``name`` and optional ``rider_id``.

        Returns:
            Dict[str, Any]: The ``AssignmentResult`` as a dict.
        """
        payload = self._coerce_input(input)
        now = datetime.now()
        request = self._load_request(payload.request_id)
        if request.status in ("Completed", "Cancelled"):
            raise ValueError(f"Request {request.request_id} is {request.status.lower()}")
        self._check_capacity(request, payload.riders)

        assignments = self.data_service.get_assignments_data(use_cache=False)
        open_rows = self._open_assignments(assignments, request.request_id)
        selected = {normalize_name(r.name) for r in payload.riders}
        to_cancel = [open_rows[key] for key in open_rows if key not in selected]
        to_add = [r for r in payload.riders if normalize_name(r.name) not in open_rows]

        status = self.request_service.status_for_riders(
            request.riders_needed, "\n".join(r.name for r in payload.riders)
        )
        try:
            self._cancel(assignments, [row_number for row_number, _ in to_cancel])
            created = self._append_assignments(assignments, request, to_add, now)
            self._queue_request_update(request, payload.riders, status, now)
            missing = self._queue_rider_stats([r.name for r in to_add], now)
            self.context.flush()
        except Exception:
            self.context.writes.discard()
            logger.exception(f"Assignment failed for request {request.request_id}")
            raise
        finally:
            self.data_service.clear_dashboard_cache()

        for _, name in to_cancel:
            activity.info(f"Cancelled assignment for {name} on request {request.request_id}")
        activity.info(
            f"Riders assigned to {request.request_id}: {len(payload.riders)}, status {status}"
        )
        return AssignmentResult(
            request_id=request.request_id,
            status=status,
            added=[r.name for r in to_add],
            cancelled=[name for _, name in to_cancel],
            assignment_ids=created,
            missing_riders=missing,
        ).model_dump()

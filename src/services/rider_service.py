import logging
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from batching.coalescer import PendingWrite
from cache.context import DispatchContext
from models.models import Rider, SheetData, SheetSchema
from services.data_service import SheetDataService
from utils.constants import ACTIVITY_LOGGER
from utils.formatting_utils import format_date_for_display
from utils.lookup_utils import find_rider, find_row, normalize_id, sheet_row_number
from utils.sheet_utils import blank_row, set_column_value

logger = logging.getLogger(__name__)
activity = logging.getLogger(ACTIVITY_LOGGER)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _digits(value: Any) -> str:
    return re.sub(r"\D", "", str(value or ""))


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class RiderService:
    """Reads and writes rows of the Riders tab."""

    def __init__(
        self,
        context: DispatchContext,
        data_service: SheetDataService,
        schema: SheetSchema,
    ):
        self.context = context
        self.data_service = data_service
        self.schema = schema
        self.columns = schema.columns.riders
        self.sheet_name = schema.sheets.riders

    def _to_rider(self, row: List[Any], column_map: Dict[str, int]) -> Rider:
        fields = {}
        for field in Rider.model_fields:
            idx = column_map.get(getattr(self.columns, field))
            if idx is None or idx >= len(row) or row[idx] in (None, ""):
                continue
            fields[field] = row[idx] if field == "total_assignments" else str(row[idx])
        fields["total_assignments"] = _to_int(fields.get("total_assignments"))
        return Rider(**fields)

    def list_riders(self) -> List[Rider]:
        index = self.data_service.get_rider_index()
        return [self._to_rider(row, index.column_map) for row in index.riders]

    def list_active_riders(self) -> List[Rider]:
        """Named riders whose status is blank, Active or Available."""
        index = self.data_service.get_rider_index()
        return [
            self._to_rider(row, index.column_map)
            for row in self.data_service.get_active_riders()
        ]

    def get_rider(self, rider_id: str) -> Optional[Rider]:
        index = self.data_service.get_rider_index()
        entry = find_rider(index, rider_id=rider_id)
        if entry is None:
            return None
        return self._to_rider(entry.row, index.column_map)

    def find_rider_by_name(self, name: str) -> Optional[Rider]:
        index = self.data_service.get_rider_index()
        entry = find_rider(index, name=name)
        if entry is None:
            return None
        return self._to_rider(entry.row, index.column_map)

    def validate_rider_data(self, data: Dict[str, Any], is_update: bool = False) -> List[str]:
        """
        Check a rider form payload keyed by ``Rider`` field names.

        Args:
            data (Dict[str, Any]): Submitted fields.
            is_update (bool): Partial payloads are allowed when updating.

        Returns:
            List[str]: Human readable problems, empty when the payload is valid.
        """
        errors = []
        if not is_update:
            for field, label in [
                ("rider_id", self.columns.rider_id),
                ("name", self.columns.name),
                ("phone", self.columns.phone),
            ]:
                if not normalize_id(data.get(field)):
                    errors.append(f"{label} is required")

        phone = data.get("phone")
        if normalize_id(phone) and len(_digits(phone)) != 10:
            errors.append("Phone number must have 10 digits")

        email = normalize_id(data.get("email"))
        if email and not EMAIL_PATTERN.match(email):
            errors.append("Email address is not valid")

        status = normalize_id(data.get("status"))
        if status and status not in self.schema.options.rider_statuses:
            errors.append(
                f"Status must be one of {', '.join(self.schema.options.rider_statuses)}"
            )
        return errors

    def _fresh_riders(self) -> SheetData:
        riders = self.data_service.get_riders_data(use_cache=False)
        if not riders.column_map:
            raise ValueError(f"{self.sheet_name} sheet has no header row")
        return riders

    def _locate(
        self, riders: SheetData, column: str, value: Any, case_sensitive: bool
    ) -> Optional[Tuple[int, List[Any]]]:
        found = find_row(riders, column, value, case_sensitive=case_sensitive)
        if found is None:
            return None
        position, row = found
        return sheet_row_number(position), row

    def add_rider(self, data: Dict[str, Any]) -> Rider:
        errors = self.validate_rider_data(data)
        if errors:
            raise ValueError("; ".join(errors))
        riders = self._fresh_riders()
        if self._locate(riders, self.columns.rider_id, data["rider_id"], True):
            raise ValueError(f"Rider ID {data['rider_id']} already exists")

        rider = Rider(**{k: v for k, v in data.items() if v is not None})
        rider.phone = _digits(rider.phone)
        row = blank_row(riders.column_map)
        for field, value in rider.model_dump().items():
            set_column_value(row, riders.column_map, getattr(self.columns, field), value)
        self.context.append_row(self.sheet_name, row)
        activity.info(f"Rider added: {rider.name} ({rider.rider_id})")
        return rider

    def update_rider(self, rider_id: str, fields: Dict[str, Any]) -> Rider:
        errors = self.validate_rider_data(fields, is_update=True)
        if errors:
            raise ValueError("; ".join(errors))
        riders = self._fresh_riders()
        located = self._locate(riders, self.columns.rider_id, rider_id, True)
        if located is None:
            raise ValueError(f"Rider {rider_id} not found")
        row_number, row = located

        updated = list(row)
        updates = []
        for field, value in fields.items():
            column = getattr(self.columns, field, None)
            if column is None or column not in riders.column_map:
                logger.warning(f"Ignoring unknown rider field {field}")
                continue
            if field == "phone":
                value = _digits(value)
            set_column_value(updated, riders.column_map, column, value)
            updates.append(PendingWrite(row_number, riders.column_map[column] + 1, value))
        if updates:
            self.context.apply_updates(self.sheet_name, updates)
            activity.info(f"Rider updated: {rider_id} ({', '.join(fields)})")
        return self._to_rider(updated, riders.column_map)

    def bulk_update_status(self, rider_ids: Iterable[str], status: str) -> int:
        if status not in self.schema.options.rider_statuses:
            raise ValueError(f"Unknown rider status: {status}")
        riders = self._fresh_riders()
        status_col = riders.index_of(self.columns.status)
        if status_col is None or riders.index_of(self.columns.rider_id) is None:
            raise ValueError(f"{self.sheet_name} sheet lacks id or status column")

        wanted = {normalize_id(rider_id) for rider_id in rider_ids}
        updated = 0
        for position, row in enumerate(riders.data):
            if normalize_id(riders.value(row, self.columns.rider_id)) in wanted:
                self.context.queue_write(
                    self.sheet_name, sheet_row_number(position), status_col + 1, status
                )
                updated += 1
        self.context.flush()
        activity.info(f"Status of {updated} rider(s) set to {status}")
        return updated

    def stats_writes(
        self, riders: SheetData, rider_name: str, when: date | datetime | None = None
    ) -> List[PendingWrite]:
        located = self._locate(riders, self.columns.name, rider_name, False)
        if located is None:
            logger.warning(f"Rider {rider_name} not found for stats update")
            return []
        row_number, row = located
        writes = []
        total_col = riders.index_of(self.columns.total_assignments)
        if total_col is not None:
            total = _to_int(riders.value(row, self.columns.total_assignments))
            writes.append(PendingWrite(row_number, total_col + 1, total + 1))
        last_col = riders.index_of(self.columns.last_assignment_date)
        if last_col is not None:
            stamp = format_date_for_display(when or datetime.now())
            writes.append(PendingWrite(row_number, last_col + 1, stamp))
        return writes

import json
import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List, Sequence

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import absolute_range_name, rowcol_to_a1

from clients.store import SheetNotFoundError, StoreError
from config.config import SETTINGS

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]


def _load_service_account_info(raw: str) -> Dict[str, Any]:
    if raw.startswith("{"):
        return json.loads(raw)
    if raw and os.path.exists(raw):
        with open(raw) as f:
            return json.load(f)
    raise ValueError("SERVICE_ACCOUNT_JSON must be a JSON string or a file path")


def _to_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%m/%d/%Y %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%m/%d/%Y")
    return value


class SheetsClient:
    """Google Sheets implementation of the tabular store.

    Cell and range writes are queued and sent in one batch request on
    ``flush``. Reads flush first so they see earlier writes.
    """

    def __init__(
        self,
        spreadsheet_id: str | None = None,
        client: gspread.Client | None = None,
    ):
        self.spreadsheet_id = spreadsheet_id or SETTINGS.spreadsheet_id
        assert self.spreadsheet_id, "Spreadsheet id not found."
        self.client = client or self._authorize()
        self._spreadsheet: gspread.Spreadsheet | None = None
        self._pending: List[Dict[str, Any]] = []

    def _authorize(self) -> gspread.Client:
        info = _load_service_account_info(SETTINGS.service_account_json)
        creds = Credentials.from_service_account_info(info, scopes=SCOPES)
        return gspread.authorize(creds)

    @property
    def spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            try:
                self._spreadsheet = self.client.open_by_key(self.spreadsheet_id)
            except gspread.exceptions.APIError as e:
                raise StoreError(f"Cannot open spreadsheet: {e}") from e
        return self._spreadsheet

    def _worksheet(self, sheet_name: str) -> gspread.Worksheet:
        try:
            return self.spreadsheet.worksheet(sheet_name)
        except gspread.exceptions.WorksheetNotFound as e:
            raise SheetNotFoundError(sheet_name) from e
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Cannot open sheet {sheet_name}: {e}") from e

    def read_all(self, sheet_name: str) -> List[List[Any]]:
        self._flush_before_read()
        worksheet = self._worksheet(sheet_name)
        try:
            return worksheet.get_all_values()
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Cannot read {sheet_name}: {e}") from e

    def read_range(self, sheet_name: str, range_spec: str) -> List[List[Any]]:
        self._flush_before_read()
        worksheet = self._worksheet(sheet_name)
        try:
            return [list(row) for row in worksheet.get(range_spec)]
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Cannot read {sheet_name}!{range_spec}: {e}") from e

    def write_cell(self, sheet_name: str, row: int, col: int, value: Any) -> None:
        self._queue(sheet_name, row, col, [value])

    def write_range(
        self, sheet_name: str, row: int, col: int, width: int, values: Sequence[Any]
    ) -> None:
        if width != len(values):
            raise ValueError(f"width {width} does not match {len(values)} values")
        self._queue(sheet_name, row, col, list(values))

    def _queue(self, sheet_name: str, row: int, col: int, values: List[Any]) -> None:
        start = rowcol_to_a1(row, col)
        end = rowcol_to_a1(row, col + len(values) - 1)
        a1 = start if start == end else f"{start}:{end}"
        self._pending.append(
            {
                "range": absolute_range_name(sheet_name, a1),
                "values": [[_to_cell(v) for v in values]],
            }
        )

    def append_row(self, sheet_name: str, values: Sequence[Any]) -> None:
        self.flush()
        worksheet = self._worksheet(sheet_name)
        try:
            worksheet.append_row(
                [_to_cell(v) for v in values], value_input_option="USER_ENTERED"
            )
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Cannot append to {sheet_name}: {e}") from e

    def flush(self) -> None:
        if not self._pending:
            return
        data, self._pending = self._pending, []
        try:
            self.spreadsheet.values_batch_update(
                {"valueInputOption": "USER_ENTERED", "data": data}
            )
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Batch update of {len(data)} range(s) failed: {e}") from e
        logger.debug(f"Flushed {len(data)} range(s) to spreadsheet")

    def _flush_before_read(self) -> None:
        if self._pending:
            self.flush()

    def get_or_create_sheet(self, sheet_name: str, headers: Sequence[str]) -> None:
        try:
            self._worksheet(sheet_name)
            return
        except SheetNotFoundError:
            pass
        try:
            worksheet = self.spreadsheet.add_worksheet(
                title=sheet_name, rows=1000, cols=max(len(headers), 1)
            )
            if headers:
                worksheet.append_row(list(headers), value_input_option="RAW")
                worksheet.format("1:1", {"textFormat": {"bold": True}})
                worksheet.freeze(rows=1)
        except gspread.exceptions.APIError as e:
            raise StoreError(f"Cannot create sheet {sheet_name}: {e}") from e
        logger.info(f"Created sheet: {sheet_name}")

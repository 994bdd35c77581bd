from datetime import date
from unittest.mock import MagicMock

import gspread
import pytest

from clients.sheets_client import SheetsClient
from clients.store import SheetNotFoundError, StoreError


def make_api_error():
    response = MagicMock()
    response.json.return_value = {"error": {"code": 429, "message": "quota", "status": "X"}}
    return gspread.exceptions.APIError(response)


@pytest.fixture
def gspread_client():
    client = MagicMock()
    client.open_by_key.return_value.worksheet.return_value.get_all_values.return_value = [
        ["Rider ID", "Full Name"],
        ["R1", "Ann Lee"],
    ]
    return client


@pytest.fixture
def sheets_client(gspread_client):
    return SheetsClient(spreadsheet_id="sheet-123", client=gspread_client)


def test_read_all_returns_values(sheets_client, gspread_client):
    assert sheets_client.read_all("Riders")[1] == ["R1", "Ann Lee"]
    gspread_client.open_by_key.assert_called_once_with("sheet-123")


def test_writes_are_sent_as_one_batch_on_flush(sheets_client, gspread_client):
    spreadsheet = gspread_client.open_by_key.return_value
    sheets_client.write_cell("Riders", 2, 5, "Inactive")
    sheets_client.write_range("Riders", 3, 2, 2, ["Bo", date(2025, 1, 2)])
    spreadsheet.values_batch_update.assert_not_called()

    sheets_client.flush()

    spreadsheet.values_batch_update.assert_called_once_with(
        {
            "valueInputOption": "USER_ENTERED",
            "data": [
                {"range": "'Riders'!E2", "values": [["Inactive"]]},
                {"range": "'Riders'!B3:C3", "values": [["Bo", "01/02/2025"]]},
            ],
        }
    )
    sheets_client.flush()
    assert spreadsheet.values_batch_update.call_count == 1


def test_read_flushes_pending_writes(sheets_client, gspread_client):
    spreadsheet = gspread_client.open_by_key.return_value
    sheets_client.write_cell("Riders", 2, 5, "Inactive")
    sheets_client.read_all("Riders")
    spreadsheet.values_batch_update.assert_called_once()


def test_write_range_width_must_match(sheets_client):
    with pytest.raises(ValueError):
        sheets_client.write_range("Riders", 2, 1, 3, ["a", "b"])


def test_missing_worksheet_raises_sheet_not_found(sheets_client, gspread_client):
    spreadsheet = gspread_client.open_by_key.return_value
    spreadsheet.worksheet.side_effect = gspread.exceptions.WorksheetNotFound("Nope")
    with pytest.raises(SheetNotFoundError) as exc:
        sheets_client.read_all("Nope")
    assert exc.value.sheet_name == "Nope"


def test_api_errors_become_store_errors(sheets_client, gspread_client):
    spreadsheet = gspread_client.open_by_key.return_value
    spreadsheet.values_batch_update.side_effect = make_api_error()
    sheets_client.write_cell("Riders", 2, 5, "x")
    with pytest.raises(StoreError):
        sheets_client.flush()


def test_append_row_uses_user_entered(sheets_client, gspread_client):
    worksheet = gspread_client.open_by_key.return_value.worksheet.return_value
    sheets_client.append_row("Log", ["a", None])
    worksheet.append_row.assert_called_once_with(["a", ""], value_input_option="USER_ENTERED")


def test_get_or_create_sheet_creates_missing_tab(sheets_client, gspread_client):
    spreadsheet = gspread_client.open_by_key.return_value
    spreadsheet.worksheet.side_effect = gspread.exceptions.WorksheetNotFound("Log")
    sheets_client.get_or_create_sheet("Log", ["Timestamp", "Type"])
    spreadsheet.add_worksheet.assert_called_once_with(title="Log", rows=1000, cols=2)
    spreadsheet.add_worksheet.return_value.freeze.assert_called_once_with(rows=1)

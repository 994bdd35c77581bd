from datetime import date, datetime, time

from utils.formatting_utils import (
    format_date_for_display,
    format_time_for_display,
    parse_date,
    parse_time,
)


def test_parse_date_accepts_sheet_shapes():
    assert parse_date("03/14/2025") == date(2025, 3, 14)
    assert parse_date("2025-03-14") == date(2025, 3, 14)
    assert parse_date(datetime(2025, 3, 14, 9, 30)) == date(2025, 3, 14)
    assert parse_date(45730) == date(2025, 3, 14)
    assert parse_date("") is None
    assert parse_date("someday") is None


def test_parse_time_accepts_sheet_shapes():
    assert parse_time("9:05 am") == time(9, 5)
    assert parse_time("13:30") == time(13, 30)
    assert parse_time(0.5) == time(12, 0)
    assert parse_time("later") is None


def test_display_formats():
    assert format_date_for_display("2025-03-04") == "03/04/2025"
    assert format_time_for_display("09:05") == "9:05 AM"
    assert format_date_for_display("TBD") == "TBD"
    assert format_time_for_display(None) == ""

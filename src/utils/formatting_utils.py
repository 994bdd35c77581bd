from datetime import date, datetime, time, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

DATE_FORMATS = (
    "%m/%d/%Y",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%y",
)
TIME_FORMATS = ("%I:%M %p", "%I:%M:%S %p", "%H:%M", "%H:%M:%S")
# spreadsheet serial dates count days from this epoch
SERIAL_EPOCH = datetime(1899, 12, 30)


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return (SERIAL_EPOCH + timedelta(days=float(value))).date()
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_time(value: Any) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, (int, float)) and 0 <= value < 1:
        return (SERIAL_EPOCH + timedelta(days=float(value))).time()
    text = str(value).strip().upper()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def format_date_for_display(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime("%m/%d/%Y")


def format_time_for_display(value: Any) -> str:
    parsed = parse_time(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime("%I:%M %p").lstrip("0")


def format_timestamp(value: datetime) -> str:
    return value.strftime("%m/%d/%Y %H:%M:%S")


def local_now(timezone: str) -> datetime:
    """Wall-clock time in ``timezone``, naive like the values sheets hold."""
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)

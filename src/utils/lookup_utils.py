from typing import Any, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from models.models import RiderEntry, RiderIndex, SheetData


def normalize_name(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _matcher(value: Any, case_sensitive: bool):
    normalize = normalize_id if case_sensitive else normalize_name
    target = normalize(value)
    return lambda cell: bool(target) and normalize(cell) == target


def find_row(
    sheet_data: "SheetData", column: str, value: Any, case_sensitive: bool = False
) -> Optional[Tuple[int, List[Any]]]:
    """Linear scan for the first row whose ``column`` equals ``value``.

    Returns (position in ``sheet_data.data``, row), or None.
    """
    idx = sheet_data.index_of(column)
    if idx is None:
        return None
    matches = _matcher(value, case_sensitive)
    for position, row in enumerate(sheet_data.data):
        if idx < len(row) and matches(row[idx]):
            return position, row
    return None


def find_rows(
    sheet_data: "SheetData", column: str, value: Any, case_sensitive: bool = False
) -> List[Tuple[int, List[Any]]]:
    idx = sheet_data.index_of(column)
    if idx is None:
        return []
    matches = _matcher(value, case_sensitive)
    return [
        (position, row)
        for position, row in enumerate(sheet_data.data)
        if idx < len(row) and matches(row[idx])
    ]


def find_rider(
    index: "RiderIndex", name: Any = None, rider_id: Any = None
) -> Optional["RiderEntry"]:
    if rider_id is not None:
        entry = index.by_id.get(normalize_id(rider_id))
        if entry is not None:
            return entry
    if name is not None:
        return index.by_name.get(normalize_name(name))
    return None


def sheet_row_number(position: int) -> int:
    """Data position -> 1-based sheet row (header occupies row 1)."""
    return position + 2

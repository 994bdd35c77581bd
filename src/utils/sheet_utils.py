import logging
from typing import Any, Dict, List, Optional, Sequence

from models.models import (
    RiderColumns,
    RiderEntry,
    RiderIndex,
    RiderOffsets,
    SheetData,
)
from utils.lookup_utils import normalize_id, normalize_name

logger = logging.getLogger(__name__)


def build_column_map(headers: Sequence[Any]) -> Dict[str, int]:
    column_map: Dict[str, int] = {}
    for idx, header in enumerate(headers):
        name = str(header).strip() if header is not None else ""
        if name:
            column_map.setdefault(name, idx)
    return column_map


def extract_sheet_data(sheet_name: str, values: List[List[Any]]) -> SheetData:
    if not values:
        return SheetData.empty(sheet_name)
    headers = [str(h).strip() if h is not None else "" for h in values[0]]
    return SheetData(
        sheet_name=sheet_name,
        headers=headers,
        data=[list(row) for row in values[1:]],
        column_map=build_column_map(headers),
    )


def get_column_value(row: Sequence[Any], column_map: Dict[str, int], column: str) -> Any:
    idx = column_map.get(column)
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def set_column_value(
    row: List[Any], column_map: Dict[str, int], column: str, value: Any
) -> None:
    idx = column_map.get(column)
    if idx is None:
        return
    if idx >= len(row):
        row.extend([""] * (idx + 1 - len(row)))
    row[idx] = value


def find_column(headers: Sequence[Any], search_term: str) -> int:
    term = search_term.lower()
    for idx, header in enumerate(headers):
        if term in str(header).lower():
            return idx
    return -1


def blank_row(column_map: Dict[str, int]) -> List[Any]:
    width = max(column_map.values()) + 1 if column_map else 0
    return [""] * width


def _cell(row: Sequence[Any], idx: Optional[int]) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def build_rider_index(values: List[List[Any]], columns: RiderColumns) -> RiderIndex:
    """
    Project a raw Riders table (header row first) into a lookup index.

    Rows with neither a name nor a rider id are left out. Names are keyed
    lower-cased, ids as written (trimmed). Any failure yields an empty index.
    """
    try:
        if not values:
            return RiderIndex()
        column_map = build_column_map(values[0])
        offsets = RiderOffsets(
            **{
                field: column_map.get(getattr(columns, field))
                for field in RiderOffsets.model_fields
            }
        )
        index = RiderIndex(column_map=column_map, offsets=offsets)
        if offsets.name is None and offsets.rider_id is None:
            logger.warning("Riders sheet has neither a name nor an id column")
            return index

        for row in values[1:]:
            name_key = normalize_name(_cell(row, offsets.name))
            id_key = normalize_id(_cell(row, offsets.rider_id))
            if not name_key and not id_key:
                continue
            entry = RiderEntry(row=list(row), position=len(index.riders))
            index.riders.append(entry.row)
            if name_key:
                index.by_name.setdefault(name_key, entry)
            if id_key:
                index.by_id.setdefault(id_key, entry)
        return index
    except Exception:
        logger.exception("Failed to build rider index")
        return RiderIndex()

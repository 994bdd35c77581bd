import re
from datetime import datetime
from typing import Any, Iterable

MONTH_LETTERS = "ABCDEFGHIJKL"
REQUEST_ID_PATTERN = re.compile(r"^([A-L])-(\d+)-(\d{2})$", re.IGNORECASE)
STRICT_REQUEST_ID_PATTERN = re.compile(r"^[A-L]-\d{2,}-\d{2}$")
ASSIGNMENT_ID_PREFIX = "ASG-"


def normalize_request_id(request_id: Any) -> Any:
    """``a-7-24`` -> ``A-07-24``; anything else comes back untouched."""
    if not isinstance(request_id, str):
        return request_id
    match = REQUEST_ID_PATTERN.match(request_id.strip().strip('"'))
    if not match:
        return request_id
    letter, sequence, year = match.groups()
    return f"{letter.upper()}-{int(sequence):02d}-{year}"


def is_valid_request_id(request_id: Any) -> bool:
    return isinstance(request_id, str) and bool(
        STRICT_REQUEST_ID_PATTERN.match(request_id)
    )


def generate_request_id(existing_ids: Iterable[Any], now: datetime | None = None) -> str:
    now = now or datetime.now()
    letter = MONTH_LETTERS[now.month - 1]
    year = now.strftime("%y")
    sequences = [0]
    for rid in existing_ids:
        if not isinstance(rid, str):
            continue
        match = REQUEST_ID_PATTERN.match(rid.strip())
        if match and match.group(1).upper() == letter and match.group(3) == year:
            sequences.append(int(match.group(2)))
    return f"{letter}-{max(sequences) + 1:02d}-{year}"


def generate_assignment_id(existing_ids: Iterable[Any]) -> str:
    highest = 0
    for aid in existing_ids:
        if not isinstance(aid, str) or not aid.startswith(ASSIGNMENT_ID_PREFIX):
            continue
        suffix = aid[len(ASSIGNMENT_ID_PREFIX) :]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{ASSIGNMENT_ID_PREFIX}{highest + 1:04d}"

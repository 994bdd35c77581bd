from typing import Any, List, Protocol, Sequence


class StoreError(Exception):
    """Raised when the tabular store rejects or fails an operation."""


class SheetNotFoundError(StoreError):
    def __init__(self, sheet_name: str):
        self.sheet_name = sheet_name
        super().__init__(f'Sheet "{sheet_name}" not found')


class TabularStore(Protocol):
    """Spreadsheet-like remote store. Rows and columns are 1-based."""

    def read_all(self, sheet_name: str) -> List[List[Any]]:
        ...

    def read_range(self, sheet_name: str, range_spec: str) -> List[List[Any]]:
        ...

    def write_cell(self, sheet_name: str, row: int, col: int, value: Any) -> None:
        ...

    def write_range(
        self, sheet_name: str, row: int, col: int, width: int, values: Sequence[Any]
    ) -> None:
        ...

    def append_row(self, sheet_name: str, values: Sequence[Any]) -> None:
        ...

    def flush(self) -> None:
        ...

    def get_or_create_sheet(self, sheet_name: str, headers: Sequence[str]) -> None:
        ...

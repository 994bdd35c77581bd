import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from clients.store import TabularStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingWrite:
    row: int
    col: int
    value: Any


@dataclass(frozen=True)
class WriteOp:
    """One store call: a single cell, or a contiguous run of cells in one row."""

    row: int
    col: int
    values: List[Any] = field(default_factory=list)

    @property
    def width(self) -> int:
        return len(self.values)

    @property
    def is_range(self) -> bool:
        return self.width > 1


def _last_write_wins(updates: Iterable[PendingWrite]) -> Dict[int, Dict[int, Any]]:
    rows: Dict[int, Dict[int, Any]] = {}
    for update in updates:
        if update.row < 1 or update.col < 1:
            raise ValueError(f"Cell coordinates are 1-based, got ({update.row}, {update.col})")
        rows.setdefault(update.row, {})[update.col] = update.value
    return rows


class CoalescingStrategy(ABC):
    @abstractmethod
    def plan(self, updates: Iterable[PendingWrite]) -> List[WriteOp]:
        pass


class RowRunCoalescer(CoalescingStrategy):
    """Group by row and emit one range write per contiguous run of columns."""

    def plan(self, updates: Iterable[PendingWrite]) -> List[WriteOp]:
        ops: List[WriteOp] = []
        for row, cells in sorted(_last_write_wins(updates).items()):
            cols = sorted(cells)
            run = [cols[0]]
            for col in cols[1:]:
                if col == run[-1] + 1:
                    run.append(col)
                    continue
                ops.append(WriteOp(row, run[0], [cells[c] for c in run]))
                run = [col]
            ops.append(WriteOp(row, run[0], [cells[c] for c in run]))
        return ops


class CellByCellCoalescer(CoalescingStrategy):
    def plan(self, updates: Iterable[PendingWrite]) -> List[WriteOp]:
        return [
            WriteOp(row, col, [cells[col]])
            for row, cells in sorted(_last_write_wins(updates).items())
            for col in sorted(cells)
        ]


def apply_updates(
    store: TabularStore,
    sheet_name: str,
    updates: Iterable[PendingWrite],
    strategy: Optional[CoalescingStrategy] = None,
) -> List[WriteOp]:
    """Write ``updates`` to ``sheet_name`` with as few store calls as the strategy allows.

    The store is flushed once after every op went through. A failing op is
    logged and re-raised; ops already issued stay applied.
    """
    strategy = strategy or RowRunCoalescer()
    ops = strategy.plan(updates)
    if not ops:
        return ops
    for op in ops:
        try:
            if op.is_range:
                store.write_range(sheet_name, op.row, op.col, op.width, op.values)
            else:
                store.write_cell(sheet_name, op.row, op.col, op.values[0])
        except Exception:
            logger.exception(
                f"Batch write failed on {sheet_name} row {op.row} col {op.col}"
            )
            raise
    try:
        store.flush()
    except Exception:
        logger.exception(f"Flush failed after batch write on {sheet_name}")
        raise
    logger.info(f"Applied {len(ops)} write(s) to {sheet_name}")
    return ops

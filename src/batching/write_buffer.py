import logging
from typing import Any, Callable, Dict, List, Optional

from batching.coalescer import (
    CoalescingStrategy,
    PendingWrite,
    RowRunCoalescer,
    WriteOp,
    apply_updates,
)
from clients.store import TabularStore

logger = logging.getLogger(__name__)


class WriteBuffer:
    """Per-sheet pending cell writes, flushed at a threshold or on demand."""

    def __init__(
        self,
        store: TabularStore,
        strategy: Optional[CoalescingStrategy] = None,
        threshold: int = 50,
        on_flush: Optional[Callable[[str], None]] = None,
    ):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.store = store
        self.strategy = strategy or RowRunCoalescer()
        self.threshold = threshold
        self.on_flush = on_flush
        self._pending: Dict[str, List[PendingWrite]] = {}

    def add(self, sheet_name: str, row: int, col: int, value: Any) -> None:
        pending = self._pending.setdefault(sheet_name, [])
        pending.append(PendingWrite(row, col, value))
        if len(pending) >= self.threshold:
            logger.debug(f"Write threshold reached for {sheet_name}")
            self.flush(sheet_name)

    def pending(self, sheet_name: str) -> List[PendingWrite]:
        return list(self._pending.get(sheet_name, []))

    def flush(self, sheet_name: Optional[str] = None) -> Dict[str, List[WriteOp]]:
        names = [sheet_name] if sheet_name else list(self._pending)
        flushed: Dict[str, List[WriteOp]] = {}
        for name in names:
            # taken out before writing so a failure does not replay the batch
            updates = self._pending.pop(name, [])
            if not updates:
                continue
            try:
                flushed[name] = apply_updates(self.store, name, updates, self.strategy)
            finally:
                # partial writes may have landed either way
                if self.on_flush:
                    self.on_flush(name)
        return flushed

    def discard(self) -> int:
        dropped = len(self)
        self._pending.clear()
        return dropped

    def __len__(self) -> int:
        return sum(len(v) for v in self._pending.values())

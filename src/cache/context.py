import logging
from typing import Dict, Iterable, List, Optional

from batching.coalescer import CoalescingStrategy, PendingWrite, WriteOp, apply_updates
from batching.write_buffer import WriteBuffer
from cache.smart_cache import SmartDataCache
from clients.store import TabularStore
from utils.constants import CacheKeys

logger = logging.getLogger(__name__)


class DispatchContext:
    """
    Cache and pending-write state shared by one execution context.

    Built once per process and handed to every service that reads or writes
    sheets. ``begin_request`` marks the start of a Streamlit run.
    """

    def __init__(
        self,
        store: TabularStore,
        cache: Optional[SmartDataCache] = None,
        strategy: Optional[CoalescingStrategy] = None,
        batch_threshold: int = 50,
    ):
        self.store = store
        self.cache = cache if cache is not None else SmartDataCache()
        self.strategy = strategy
        self.writes = WriteBuffer(
            store,
            strategy=strategy,
            threshold=batch_threshold,
            on_flush=self.invalidate_sheet,
        )

    def begin_request(self) -> None:
        dropped = self.writes.discard()
        if dropped:
            logger.warning(f"Discarded {dropped} unflushed write(s) from a previous run")
        expired = self.cache.prune_expired()
        if expired:
            logger.debug(f"Pruned {expired} expired cache entries")

    def reset(self) -> None:
        self.writes.discard()
        self.cache.clear()

    def queue_write(self, sheet_name: str, row: int, col: int, value) -> None:
        self.writes.add(sheet_name, row, col, value)

    def apply_updates(
        self, sheet_name: str, updates: Iterable[PendingWrite]
    ) -> List[WriteOp]:
        try:
            return apply_updates(self.store, sheet_name, updates, self.strategy)
        finally:
            self.invalidate_sheet(sheet_name)

    def append_row(self, sheet_name: str, values: List) -> None:
        try:
            self.store.append_row(sheet_name, values)
        finally:
            self.invalidate_sheet(sheet_name)

    def flush(self) -> Dict[str, List[WriteOp]]:
        return self.writes.flush()

    def invalidate_sheet(self, sheet_name: str) -> None:
        self.cache.invalidate_with_dependencies(
            CacheKeys.sheet(sheet_name), transitive=True
        )

import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)


class _Miss:
    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float
    timeout: float

    def is_valid(self, now: float) -> bool:
        return now - self.inserted_at < self.timeout


class SmartDataCache:
    """
    In-memory time-expiring key/value cache with dependency invalidation.

    Entries live until their timeout elapses (checked lazily on read) or until
    they are invalidated explicitly or through a key they depend on. A cached
    value of ``None`` is a hit; only ``MISS`` signals a miss.
    """

    def __init__(
        self,
        default_timeout: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_timeout = default_timeout
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        # upon key -> keys that depend on it
        self._dependents: Dict[str, Set[str]] = defaultdict(set)
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return MISS
        if not entry.is_valid(self._clock()):
            del self._entries[key]
            self._misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return MISS
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, timeout: Optional[float] = None) -> None:
        effective = self.default_timeout if timeout is None else timeout
        self._entries[key] = CacheEntry(
            value=value, inserted_at=self._clock(), timeout=effective
        )

    def get_or_load(
        self, key: str, loader: Callable[[], Any], timeout: Optional[float] = None
    ) -> Any:
        value = self.get(key)
        if value is not MISS:
            return value
        value = loader()
        self.set(key, value, timeout)
        return value

    def add_dependency(self, dependent_key: str, upon_key: str) -> None:
        if dependent_key == upon_key:
            return
        self._dependents[upon_key].add(dependent_key)

    def dependents_of(self, key: str) -> Set[str]:
        return set(self._dependents.get(key, ()))

    def invalidate(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def invalidate_with_dependencies(self, key: str, transitive: bool = False) -> Set[str]:
        """
        Remove ``key`` and the keys registered as depending on it.

        By default only direct dependents are removed. With ``transitive`` the
        dependency graph is walked so dependents of dependents go as well.

        Returns:
            Set[str]: every key that was targeted, whether or not it held a value.
        """
        targeted = {key}
        queue = deque([key])
        while queue:
            current = queue.popleft()
            for dependent in self._dependents.get(current, ()):
                if dependent in targeted:
                    continue
                targeted.add(dependent)
                if transitive:
                    queue.append(dependent)
        for target in targeted:
            self._entries.pop(target, None)
        logger.debug(f"Invalidated {sorted(targeted)} via {key}")
        return targeted

    def prune_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if not e.is_valid(now)]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "dependency_edges": sum(len(v) for v in self._dependents.values()),
        }

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_valid(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

"""
Expiring in-process cache for the Product Proxy.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Hashable, Optional

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the absolute time (epoch seconds) it expires at."""

    value: Any
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class ExpiringCache:
    """Mapping of key to :class:`CacheEntry` with expiry checked on read.

    Expired entries are left in place and simply reported as misses until a
    caller overwrites them. Nothing is ever evicted; ``clear`` is only meant
    for service teardown.
    """

    def __init__(
        self,
        name: str,
        *,
        clock: Optional[Clock] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.name = name
        self.clock: Clock = clock or time.time
        self.metrics = metrics
        self.logger = get_logger(f"product-proxy.cache.{name}")
        self._entries: Dict[Hashable, CacheEntry] = {}

    def now(self) -> float:
        return self.clock()

    def entry(self, key: Hashable) -> Optional[CacheEntry]:
        """Return the raw entry for ``key`` regardless of freshness."""
        return self._entries.get(key)

    def get(self, key: Hashable, now: Optional[float] = None) -> Optional[Any]:
        """Return the cached value if present and not yet expired."""
        current = self.now() if now is None else now
        entry = self._entries.get(key)
        hit = entry is not None and entry.is_fresh(current)

        if self.metrics is not None:
            self.metrics.record_cache_access(self.name, hit)

        if not hit:
            self.logger.debug("Cache miss", key=str(key), stale=entry is not None)
            return None

        self.logger.debug("Cache hit", key=str(key), expires_at=entry.expires_at)
        return entry.value

    def put(self, key: Hashable, value: Any, expires_at: float) -> CacheEntry:
        """Store ``value`` under ``key`` until the absolute time ``expires_at``."""
        entry = CacheEntry(value=value, expires_at=expires_at)
        self._entries[key] = entry
        self.logger.debug("Cached value", key=str(key), expires_at=expires_at)
        return entry

    def put_for(self, key: Hashable, value: Any, ttl: float, now: Optional[float] = None) -> CacheEntry:
        """Store ``value`` for ``ttl`` seconds measured from ``now``."""
        current = self.now() if now is None else now
        return self.put(key, value, current + ttl)

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        self.logger.info("Cache cleared", entries=count)

    def stats(self) -> Dict[str, Any]:
        """Return entry counts for health reporting."""
        current = self.now()
        fresh = sum(1 for entry in self._entries.values() if entry.is_fresh(current))
        return {
            "entries": len(self._entries),
            "fresh": fresh,
            "stale": len(self._entries) - fresh,
        }

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

"""In-memory TTL cache of normalized snapshots keyed by scope and window."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .models import DateWindow, MetricSnapshot, MetricsScope

logger = logging.getLogger(__name__)

CacheKey = Tuple[MetricsScope, Optional[DateWindow]]


class SnapshotCache:
    """Memoizes ``(scope, window) -> snapshot``.

    Snapshots are immutable, so entries are stored and returned as-is.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, MetricSnapshot]] = {}

    def get(self, scope: MetricsScope, window: Optional[DateWindow]) -> Optional[MetricSnapshot]:
        """Return the cached snapshot, or ``None`` when absent or expired."""
        key = (scope, window)
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, snapshot = entry
        if self._clock() - stored_at > self._ttl_seconds:
            del self._entries[key]
            logger.debug("Cache entry expired", extra={"scope": scope.label, "window": str(window)})
            return None

        return snapshot

    def set(self, scope: MetricsScope, window: Optional[DateWindow], snapshot: MetricSnapshot) -> None:
        self._entries[(scope, window)] = (self._clock(), snapshot)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

# /app/services/cache_service.py

"""
In-process cache for dashboard snapshots.

Contract: entries are keyed by `(scope, term_id)` (scope is "admin" or
"teacher:<id>") and are served for at most `ttl_seconds` after they were
built. Any grade write calls `invalidate()`, so a teacher never waits out
the TTL to see their own change. The aggregation functions know nothing
about this cache; the dashboard service wraps them.
"""

import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from ..core.config import DASHBOARD_CACHE_TTL_SECONDS


class DashboardCache:
    def __init__(self, ttl_seconds: int = DASHBOARD_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_build(self, key: Hashable, builder: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = builder()
        self.set(key, value)
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._entries.clear()


dashboard_cache = DashboardCache()

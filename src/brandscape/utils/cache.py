"""In-process cache with time-to-live expiry checked on read."""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Map of key -> value whose entries expire ``ttl_seconds`` after they were written.

    Expired entries are dropped lazily by ``get``; there is no eviction thread.
    A lock guards the underlying dict so concurrent screening calls never see a
    half-written entry. The cache lives in one process only.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            written_at, value = entry
            if self._clock() - written_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (written_at, _) in self._entries.items() if now - written_at >= self.ttl_seconds]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

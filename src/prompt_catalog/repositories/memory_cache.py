"""Process-local TTL cache.

Expiry is checked lazily on read; there is no background eviction and no
size bound. Intended only for the development fallback path.
"""

import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


class MemoryCache:
    """Simple in-memory key/value store with per-entry expiry.

    Example:
        ```python
        cache = MemoryCache(default_ttl_seconds=60)
        cache.set("key", {"a": 1})
        cache.get("key")  # {"a": 1}
        cache.set("short", "value", ttl_seconds=1)
        ```
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            default_ttl_seconds: TTL applied when set() gets no override.
            clock: Returns the current time in seconds (injectable for tests).
        """
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, tuple[Any, float]] = {}  # key -> (value, expires_at)

    def get(self, key: str) -> Any | None:
        """Return the cached value if still fresh, else None.

        An expired entry is evicted as a side effect.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: T, ttl_seconds: float | None = None) -> None:
        """Store a value, overwriting any existing entry.

        Args:
            key: Cache key
            value: Value to store (None cannot be told apart from a miss)
            ttl_seconds: Overrides the default TTL for this entry
        """
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._store[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> None:
        """Remove one entry if present."""
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._store.clear()

    def has(self, key: str) -> bool:
        """Check if a key is present and unexpired (same eviction side effect as get)."""
        return self.get(key) is not None

    @property
    def default_ttl(self) -> float:
        """Get the default TTL in seconds."""
        return self._default_ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

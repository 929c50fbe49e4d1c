"""Bounded registry of processed webhook event ids."""

import threading
from collections import OrderedDict

DEFAULT_CAPACITY = 1000


class ProcessedEventRegistry:
    """Remembers recently seen event ids for replay suppression.

    Eviction is by insertion order only: when full, the oldest admitted id
    is dropped, regardless of how recently it was looked up. State lives for
    the process lifetime.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._ids: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    def admit(self, event_id: str) -> bool:
        """Record an event id.

        Args:
            event_id: Webhook event identifier

        Returns:
            True if the id was new and is now recorded, False if already seen
        """
        with self._lock:
            if event_id in self._ids:
                return False
            self._ids[event_id] = None
            if len(self._ids) > self._capacity:
                self._ids.popitem(last=False)
            return True

    def __contains__(self, event_id: object) -> bool:
        with self._lock:
            return event_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    @property
    def capacity(self) -> int:
        return self._capacity

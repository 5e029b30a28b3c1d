"""In-memory cache of committed reads."""

import threading
from typing import Any, Hashable, Optional


class ReadCache:
    """Thread-safe map of values read from committed state.

    Every commit bumps the generation and empties the cache. A reader records
    the generation before it queries and passes it to ``put``; values read
    before a concurrent commit are then dropped instead of cached.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[Hashable, Any] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: Hashable, value: Any, generation: int) -> bool:
        """Store a value if nothing was committed since ``generation``."""
        with self._lock:
            if generation != self._generation:
                return False
            self._entries[key] = value
            return True

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

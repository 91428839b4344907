"""
In-process cache store
"""

import copy
import threading
import time
from typing import Any, Dict, Optional, Tuple

from .store import CacheStore


class ArrayStore(CacheStore):
    """Dictionary-backed store living for the lifetime of the process.

    Values are deep-copied on the way in and out so callers mutating a
    returned result set never alter the cached entry.
    """

    def __init__(self, prefix: str = ""):
        super().__init__(prefix)
        self._storage: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        key = self._prefixed(key)
        with self._lock:
            item = self._storage.get(key)
            if item is None:
                return default
            value, expires_at = item
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._storage[key]
                return default
            return copy.deepcopy(value)

    def put(self, key: str, value: Any, minutes: float) -> bool:
        expires_at = time.monotonic() + self._seconds(minutes)
        with self._lock:
            self._storage[self._prefixed(key)] = (copy.deepcopy(value), expires_at)
        return True

    def forever(self, key: str, value: Any) -> bool:
        with self._lock:
            self._storage[self._prefixed(key)] = (copy.deepcopy(value), None)
        return True

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._storage.pop(self._prefixed(key), None) is not None

    def flush(self) -> bool:
        with self._lock:
            self._storage.clear()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)

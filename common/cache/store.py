"""
Base cache store with get-or-compute semantics shared by every backend
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Optional, Union

from loguru import logger


# Sentinel distinguishing "no entry" from a cached None
MISSING = object()


class CacheStore(ABC):
    """Key/value cache store.

    Backends implement the raw ``get``/``put``/``forever``/``forget``/``flush``
    operations; ``remember`` and ``remember_forever`` build the get-or-compute
    contract on top of them. ``minutes`` is always a number of minutes, ``0``
    meaning an entry that is already expired once stored.
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def put(self, key: str, value: Any, minutes: float) -> bool:
        pass

    @abstractmethod
    def forever(self, key: str, value: Any) -> bool:
        pass

    @abstractmethod
    def forget(self, key: str) -> bool:
        pass

    @abstractmethod
    def flush(self) -> bool:
        pass

    def has(self, key: str) -> bool:
        return self.get(key, MISSING) is not MISSING

    def remember(self, key: str, minutes: float, callback: Callable[[], Any]) -> Any:
        """Get an item from the cache, or compute and store it for ``minutes``"""
        value = self._lookup(key)
        if value is not MISSING:
            return value

        value = callback()
        self.put(key, value, minutes)
        logger.debug(f"QueryCache STORE key={key} minutes={minutes}")
        return value

    def remember_forever(self, key: str, callback: Callable[[], Any]) -> Any:
        """Get an item from the cache, or compute and store it without expiry"""
        value = self._lookup(key)
        if value is not MISSING:
            return value

        value = callback()
        self.forever(key, value)
        logger.debug(f"QueryCache STORE key={key} minutes=forever")
        return value

    def tags(self, names: Union[str, Iterable[str]]) -> 'CacheStore':
        """Begin executing a new tags operation"""
        from .tagged import TagSet, TaggedCache

        if isinstance(names, str):
            names = [names]
        return TaggedCache(self, TagSet(self, list(names)))

    def stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            total = self._hits + self._misses
            return {
                "backend": type(self).__name__,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total else 0.0,
            }

    def _lookup(self, key: str) -> Any:
        value = self.get(key, MISSING)
        hit = value is not MISSING
        self._record(hit)
        logger.debug(f"QueryCache {'HIT' if hit else 'MISS'} key={key}")
        return value

    def _record(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def _prefixed(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @staticmethod
    def _seconds(minutes: Optional[float]) -> Optional[float]:
        if minutes is None:
            return None
        return max(float(minutes), 0.0) * 60

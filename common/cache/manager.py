"""
Process-wide cache manager resolving the configured store
"""

import threading
from typing import Any, Dict, Optional

from loguru import logger

from .config import CacheConfig
from .key_generator import CacheKeyGenerator, create_cache_key_generator
from .memory_store import ArrayStore
from .store import CacheStore


class CacheManager:
    """Build and hold the cache store and key generator described by a config"""

    def __init__(self, config: Optional[CacheConfig] = None):
        self.config = config or CacheConfig()
        self._store: Optional[CacheStore] = None
        self._key_generator: Optional[CacheKeyGenerator] = None
        self._lock = threading.Lock()

    def store(self) -> CacheStore:
        """Get the default store, creating it on first use"""
        with self._lock:
            if self._store is None:
                self._store = self._create_store()
            return self._store

    def key_generator(self) -> CacheKeyGenerator:
        with self._lock:
            if self._key_generator is None:
                self._key_generator = create_cache_key_generator(self.config.key_generator)
            return self._key_generator

    def _create_store(self) -> CacheStore:
        driver = self.config.driver
        if driver == "mysql":
            from .mysql_store import MySQLCacheStore
            store = MySQLCacheStore(self.config.mysql, prefix=self.config.prefix)
        else:
            store = ArrayStore(prefix=self.config.prefix)
        logger.info(f"CacheManager initialized with {driver} backend")
        return store


_manager: Optional[CacheManager] = None
_manager_lock = threading.Lock()


def get_cache_manager() -> CacheManager:
    """Get the process-wide cache manager, defaulting to an in-memory store"""
    global _manager
    with _manager_lock:
        if _manager is None:
            _manager = CacheManager()
        return _manager


def set_cache_manager(manager: Optional[CacheManager]) -> None:
    """Replace the process-wide cache manager (``None`` resets to default)"""
    global _manager
    with _manager_lock:
        _manager = manager


def create_cache_manager(cache_config: Optional[Dict[str, Any]] = None) -> CacheManager:
    """Factory function to create cache manager from config dict"""
    if cache_config is None:
        config = CacheConfig()
    else:
        config = CacheConfig.from_dict(cache_config)

    return CacheManager(config)

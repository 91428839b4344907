"""
Query builder with transparent result caching
"""

import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from common.cache.key_generator import CacheKeyGenerator
from common.cache.manager import get_cache_manager
from common.cache.store import CacheStore
from .builder import BaseQueryBuilder, Columns, _column_list
from .directive import CacheDirective, CacheDuration, normalize_tags, to_duration


class QueryBuilder(BaseQueryBuilder):
    """Query builder whose results can be remembered in a cache store.

    Nothing changes until ``remember``/``remember_forever`` is called: ``get``
    then looks the rendered query up in the cache store and only runs it on a
    miss. The store and key generator default to the process-wide
    ``CacheManager``.
    """

    def __init__(self, connection, grammar=None, cache: Optional[CacheStore] = None,
                 key_generator: Optional[CacheKeyGenerator] = None):
        super().__init__(connection, grammar)
        self.cache = cache
        self.key_generator = key_generator
        self.cache_directive = CacheDirective()

    def aggregate(self, function: str, columns: Columns = ("*",)) -> Any:
        """Execute an aggregate function on the database.

        Ordering is dropped while the aggregate runs (PostgreSQL rejects
        ``order by`` on an ungrouped aggregate); the query's columns and
        ordering are restored afterwards, also when the query fails.
        """
        columns = _column_list(columns)
        previous_columns = self.columns
        previous_orders = self.orders

        self.aggregate_ = {"function": function, "columns": columns}
        self.orders = None
        try:
            results = self.get(columns)
        finally:
            # Reset so later selects on this builder render without the aggregate
            self.aggregate_ = None
            self.columns = previous_columns
            self.orders = previous_orders

        if results:
            row = {str(name).lower(): value for name, value in results[0].items()}
            return row.get("aggregate")
        return None

    def count(self, columns: Columns = "*") -> int:
        result = self.aggregate("count", columns)
        return int(result) if result is not None else 0

    def sum(self, column: str) -> Any:
        return self.aggregate("sum", [column])

    def avg(self, column: str) -> Any:
        return self.aggregate("avg", [column])

    def min(self, column: str) -> Any:
        return self.aggregate("min", [column])

    def max(self, column: str) -> Any:
        return self.aggregate("max", [column])

    def exists(self) -> bool:
        return self.count() > 0

    def remember(self, minutes: Union[float, datetime.timedelta], key: Optional[str] = None) -> 'QueryBuilder':
        """Indicate that the query results should be cached.

        A negative number of minutes caches forever.
        """
        duration = to_duration(minutes)
        if duration.is_forever and minutes != -1:
            logger.debug(f"QueryCache: remember({minutes}) treated as forever")
        self.cache_directive.duration = duration
        self.cache_directive.key = key
        return self

    def remember_forever(self, key: Optional[str] = None) -> 'QueryBuilder':
        """Indicate that the query results should be cached forever"""
        return self.remember(-1, key)

    def dont_remember(self) -> 'QueryBuilder':
        self.cache_directive = CacheDirective()
        return self

    def with_tags(self, tags: Union[str, Iterable[str]]) -> 'QueryBuilder':
        """Indicate that the results, if cached, should use the given cache tags"""
        self.cache_directive.tags = normalize_tags(tags)
        return self

    cache_tags = with_tags

    def get(self, columns: Columns = ("*",)) -> List[Dict[str, Any]]:
        if self.cache_directive.enabled:
            return self.get_cached(columns)

        return self.get_fresh(columns)

    def get_cached(self, columns: Columns = ("*",)) -> List[Dict[str, Any]]:
        """Execute the query as a cached "select" statement"""
        if self.columns is None:
            self.columns = _column_list(columns)

        # The key covers the connection name, the statement and its bindings
        key, duration = self.get_cache_info()

        cache = self.get_cache()

        callback = self.get_cache_callback(columns)

        if duration.is_forever:
            return cache.remember_forever(key, callback)

        return cache.remember(key, duration.minutes, callback)

    def get_cache(self) -> CacheStore:
        """Get the cache store with tags assigned, if applicable"""
        cache = self.cache if self.cache is not None else get_cache_manager().store()

        return cache.tags(self.cache_directive.tags) if self.cache_directive.tags else cache

    def get_cache_info(self) -> Tuple[str, CacheDuration]:
        return self.get_cache_key(), self.cache_directive.duration

    def get_cache_key(self) -> str:
        """Get a unique cache key for the complete query"""
        return self.cache_directive.key or self.generate_cache_key()

    def generate_cache_key(self) -> str:
        """Generate the unique cache key for the query"""
        name = self.connection.get_name()
        key_generator = self.key_generator or get_cache_manager().key_generator()

        return key_generator.generate_key(name, self.to_sql(), self.get_bindings())

    def get_cache_callback(self, columns: Columns) -> Callable[[], List[Dict[str, Any]]]:
        return lambda: self.get_fresh(columns)

    def clone(self) -> 'QueryBuilder':
        cloned = super().clone()
        cloned.cache_directive = self.cache_directive.copy()
        return cloned

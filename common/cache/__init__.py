"""
Query Result Cache Stores

Cache stores with get-or-compute semantics used by the query builder to
remember result sets, optionally scoped by tags for grouped invalidation.
"""

from .config import CacheConfig, MySQLConfig, KeyGeneratorConfig, load_cache_config
from .store import CacheStore
from .memory_store import ArrayStore
from .mysql_store import MySQLCacheStore
from .tagged import TaggedCache, TagSet
from .key_generator import CacheKeyGenerator, create_cache_key_generator
from .manager import CacheManager, get_cache_manager, set_cache_manager, create_cache_manager

__version__ = "1.0.0"
__all__ = [
    "CacheConfig",
    "MySQLConfig",
    "KeyGeneratorConfig",
    "load_cache_config",
    "CacheStore",
    "ArrayStore",
    "MySQLCacheStore",
    "TaggedCache",
    "TagSet",
    "CacheKeyGenerator",
    "create_cache_key_generator",
    "CacheManager",
    "get_cache_manager",
    "set_cache_manager",
    "create_cache_manager",
]

"""
Database Query Builder

A select query builder over named DB-API connections whose results can be
remembered in a cache store, keyed by connection, SQL text and bindings.
"""

from .connection import Connection, connect_mysql
from .directive import CacheDirective, CacheDuration
from .grammar import Grammar, MySqlGrammar
from .builder import BaseQueryBuilder
from .query_builder import QueryBuilder

__all__ = [
    'Connection',
    'connect_mysql',
    'CacheDirective',
    'CacheDuration',
    'Grammar',
    'MySqlGrammar',
    'BaseQueryBuilder',
    'QueryBuilder',
]

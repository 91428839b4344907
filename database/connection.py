"""
Named database connection wrapping a DB-API 2 connection
"""

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from common.cache.config import MySQLConfig
from common.cache.store import CacheStore
from .grammar import Grammar, MySqlGrammar

try:
    import pymysql
except ImportError:
    pymysql = None


class Connection:
    """A logical, named connection that runs select statements.

    ``name`` takes part in every derived cache key so that identical SQL run
    against two different databases never shares cached results.
    """

    def __init__(self, name: str, dbapi_connection, grammar: Optional[Grammar] = None,
                 cache: Optional[CacheStore] = None):
        self.name = name
        self.dbapi_connection = dbapi_connection
        self.grammar = grammar or Grammar()
        self.cache = cache

    def get_name(self) -> str:
        return self.name

    def get_query_grammar(self) -> Grammar:
        return self.grammar

    def select(self, sql: str, bindings: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a select statement and return rows as column -> value mappings"""
        logger.debug(f"Connection[{self.name}] select: {sql} bindings={list(bindings)}")
        cursor = self.dbapi_connection.cursor()
        try:
            cursor.execute(sql, tuple(bindings))
            columns = [description[0] for description in cursor.description or ()]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def table(self, table: str):
        """Begin a fluent query against a table"""
        from .query_builder import QueryBuilder
        return QueryBuilder(self, cache=self.cache).from_(table)

    def close(self) -> None:
        self.dbapi_connection.close()


def connect_mysql(name: str, config: MySQLConfig, cache: Optional[CacheStore] = None) -> Connection:
    """Open a MySQL connection using the same settings layout as the cache store"""
    if pymysql is None:
        raise RuntimeError("PyMySQL package is required for MySQL connections")

    dbapi_connection = pymysql.connect(
        host=config.host,
        port=config.port,
        user=config.user,
        password=config.password,
        database=config.database,
        autocommit=config.autocommit,
        charset=config.charset,
    )
    return Connection(name, dbapi_connection, grammar=MySqlGrammar(), cache=cache)

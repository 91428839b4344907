"""
MySQL storage for query result cache
"""

import pickle
import threading
from typing import Any

from loguru import logger
from .config import MySQLConfig
from .store import CacheStore

try:
    import pymysql
except ImportError:
    pymysql = None


class MySQLCacheStore(CacheStore):
    """MySQL storage backend for cached result sets.

    Backend errors never reach the caller: a failed read is a miss and a
    failed write is logged and dropped, so queries keep working when the
    cache database is unavailable.
    """

    def __init__(self, config: MySQLConfig, prefix: str = ""):
        if pymysql is None:
            raise RuntimeError("PyMySQL package is required for MySQL cache storage")

        super().__init__(prefix)
        self.config = config
        self._local = threading.local()
        self._reconnects = 0

        self._initialize_database()

    def _initialize_database(self):
        """Initialize database and table"""
        logger.info(f"MySQLCacheStore: connecting host={self.config.host} port={self.config.port} db={self.config.database}")

        admin_conn = None
        try:
            admin_conn = pymysql.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                autocommit=self.config.autocommit
            )
            with admin_conn.cursor() as cur:
                cur.execute(f"CREATE DATABASE IF NOT EXISTS `{self.config.database}` DEFAULT CHARACTER SET {self.config.charset}")
            logger.debug("MySQLCacheStore: ensured database exists")
        except Exception as e:
            logger.warning(f"Could not ensure database exists: {e}")
        finally:
            if admin_conn is not None:
                admin_conn.close()

        conn = self._create_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(self._get_table_sql())
            logger.debug(f"MySQLCacheStore: ensured {self.config.table_name} table exists")
        finally:
            conn.close()

    def _create_connection(self):
        """Create a new MySQL connection"""
        return pymysql.connect(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            password=self.config.password,
            database=self.config.database,
            autocommit=self.config.autocommit,
            charset=self.config.charset,
        )

    def _get_connection(self):
        """Get this thread's connection, reconnecting when it went away"""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = self._create_connection()
            self._local.conn = conn
            return conn
        try:
            conn.ping(reconnect=True)
        except Exception:
            conn = self._create_connection()
            with self._stats_lock:
                self._reconnects += 1
            self._local.conn = conn
        return conn

    def _get_table_sql(self) -> str:
        """Generate table creation SQL"""
        return (
            f"CREATE TABLE IF NOT EXISTS {self.config.table_name} ("
            "  cache_key VARCHAR(255) PRIMARY KEY,"
            "  payload LONGBLOB NOT NULL,"
            "  created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,"
            "  ttl_sec INT NULL,"
            "  expires_at TIMESTAMP NULL,"
            "  INDEX (expires_at)"
            f") ENGINE=InnoDB DEFAULT CHARSET={self.config.charset};"
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a cached value, ``default`` when missing, expired or unreadable"""
        cache_key = self._prefixed(key)
        try:
            conn = self._get_connection()
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT payload, expires_at IS NULL OR NOW() < expires_at FROM {self.config.table_name} WHERE cache_key=%s",
                    (cache_key,),
                )
                row = cur.fetchone()
        except Exception as e:
            logger.debug(f"MySQL cache get failed, returning default: {e}")
            return default

        if not row:
            return default

        payload, fresh = row
        if not fresh:
            logger.debug(f"QueryCache EXPIRED key={cache_key}")
            return default

        try:
            return pickle.loads(payload)
        except Exception as e:
            logger.warning(f"Failed to deserialize cached data for key={cache_key}: {e}")
            return default

    def put(self, key: str, value: Any, minutes: float) -> bool:
        return self._write(key, value, int(self._seconds(minutes)))

    def forever(self, key: str, value: Any) -> bool:
        return self._write(key, value, None)

    def _write(self, key: str, value: Any, ttl_sec) -> bool:
        cache_key = self._prefixed(key)
        try:
            payload = pickle.dumps(value)
        except Exception as e:
            logger.warning(f"Failed to serialize value for key={cache_key}: {e}")
            return False

        try:
            conn = self._get_connection()
            with conn.cursor() as cur:
                if ttl_sec is not None:
                    # Let MySQL compute expiration timestamp
                    cur.execute(
                        f"INSERT INTO {self.config.table_name} (cache_key, payload, ttl_sec, expires_at)"
                        " VALUES (%s, %s, %s, NOW() + INTERVAL %s SECOND)"
                        " ON DUPLICATE KEY UPDATE payload=VALUES(payload), ttl_sec=VALUES(ttl_sec), expires_at=VALUES(expires_at)",
                        (cache_key, payload, ttl_sec, ttl_sec),
                    )
                else:
                    cur.execute(
                        f"INSERT INTO {self.config.table_name} (cache_key, payload, ttl_sec, expires_at)"
                        " VALUES (%s, %s, NULL, NULL)"
                        " ON DUPLICATE KEY UPDATE payload=VALUES(payload), ttl_sec=NULL, expires_at=NULL",
                        (cache_key, payload),
                    )
        except Exception as e:
            logger.warning(f"MySQL cache put failed, ignoring: {e}")
            return False

        logger.debug(f"MySQLCacheStore STORE key={cache_key} size={len(payload)} ttl={ttl_sec}")
        return True

    def forget(self, key: str) -> bool:
        conn = self._get_connection()
        with conn.cursor() as cur:
            deleted = cur.execute(
                f"DELETE FROM {self.config.table_name} WHERE cache_key=%s",
                (self._prefixed(key),),
            )
        return bool(deleted)

    def flush(self) -> bool:
        conn = self._get_connection()
        with conn.cursor() as cur:
            cur.execute(f"TRUNCATE TABLE {self.config.table_name}")
        logger.info(f"MySQLCacheStore: flushed {self.config.table_name}")
        return True

    def stats(self):
        stats = super().stats()
        with self._stats_lock:
            stats["reconnects"] = self._reconnects
        return stats

    def close(self) -> None:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

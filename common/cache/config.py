"""
Cache configuration for query result caching
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any
import os

import yaml
from dotenv import load_dotenv
from loguru import logger


SUPPORTED_DRIVERS = ("array", "mysql")


@dataclass
class MySQLConfig:
    """MySQL database configuration for the cache store"""
    host: str = "localhost"
    port: int = 3306
    user: Optional[str] = None
    password: Optional[str] = None
    database: str = "query_cache"
    table_name: str = "query_result_cache"
    charset: str = "utf8mb4"
    autocommit: bool = True

    def __post_init__(self):
        # Get from environment variables if not provided or if value is env var name
        if self.host is None or self.host == "MYSQL_HOST":
            self.host = os.getenv('MYSQL_HOST', 'localhost')
        if self.port is None or str(self.port) == "MYSQL_PORT":
            self.port = int(os.getenv('MYSQL_PORT', '3306'))
        if self.user is None or self.user == "MYSQL_USER":
            self.user = os.getenv('MYSQL_USER', 'root')
        if self.password is None or self.password == "MYSQL_PASSWORD":
            self.password = os.getenv('MYSQL_PASSWORD', '')


@dataclass
class KeyGeneratorConfig:
    """Cache key generation configuration"""
    hash_algorithm: str = "md5"
    hash_digest_size: int = 16  # blake2b only
    prefix: str = ""  # prepended to every derived key


@dataclass
class CacheConfig:
    """Complete cache configuration"""
    driver: str = "array"
    prefix: str = ""
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    key_generator: KeyGeneratorConfig = field(default_factory=KeyGeneratorConfig)
    log_level: str = "INFO"

    def __post_init__(self):
        self.driver = self.driver.lower()
        if self.driver not in SUPPORTED_DRIVERS:
            raise ValueError(
                f"Unknown cache driver: {self.driver}. "
                f"Supported drivers: {', '.join(SUPPORTED_DRIVERS)}"
            )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'CacheConfig':
        """Create CacheConfig from dictionary"""
        mysql_config = MySQLConfig(**config_dict.get('mysql', {}))
        key_config = KeyGeneratorConfig(**config_dict.get('key_generator', {}))

        return cls(
            driver=config_dict.get('driver', 'array'),
            prefix=config_dict.get('prefix', ''),
            mysql=mysql_config,
            key_generator=key_config,
            log_level=config_dict.get('log_level', 'INFO'),
        )


def load_cache_config(config_path: str) -> CacheConfig:
    """Load cache configuration from a YAML file.

    The file may either hold the cache options at the top level or nest them
    under a ``cache`` key, so the cache section of a larger application config
    can be pointed at directly.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug("Loaded environment variables from .env file")

    with open(path, 'r', encoding='utf-8') as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Cache config must be a mapping, got {type(raw_config).__name__}")

    cache_section = raw_config.get('cache', raw_config)
    if cache_section is None:
        cache_section = {}

    return CacheConfig.from_dict(cache_section)

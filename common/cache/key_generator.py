"""
Cache key generator for rendered queries
"""

import datetime
import decimal
import hashlib
import json
import uuid
from typing import Any, Sequence

from .config import KeyGeneratorConfig


SUPPORTED_ALGORITHMS = ("md5", "sha1", "sha256", "blake2b")


def _encode_binding(value: Any) -> Any:
    """JSON fallback for binding values json cannot encode natively.

    Values are tagged with their type so that e.g. ``Decimal("1")`` and the
    string ``"1"`` never serialize identically.
    """
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return {"__type__": type(value).__name__, "value": value.isoformat()}
    if isinstance(value, decimal.Decimal):
        return {"__type__": "Decimal", "value": str(value)}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"__type__": "bytes", "value": bytes(value).hex()}
    if isinstance(value, uuid.UUID):
        return {"__type__": "UUID", "value": str(value)}
    if isinstance(value, (set, frozenset)):
        return {"__type__": type(value).__name__, "value": sorted(repr(v) for v in value)}
    return {"__type__": type(value).__name__, "value": repr(value)}


class CacheKeyGenerator:
    """Generate cache keys for rendered queries"""

    def __init__(self, config: KeyGeneratorConfig = None):
        self.config = config or KeyGeneratorConfig()
        algorithm = self.config.hash_algorithm.lower()
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unknown hash algorithm: {self.config.hash_algorithm}. "
                f"Supported algorithms: {', '.join(SUPPORTED_ALGORITHMS)}"
            )
        self.algorithm = algorithm

    def serialize_bindings(self, bindings: Sequence[Any]) -> str:
        """Stable serialization of an ordered binding list"""
        return json.dumps(
            list(bindings), separators=(",", ":"), ensure_ascii=False,
            default=_encode_binding
        )

    def generate_key(self, connection_name: str, sql: str, bindings: Sequence[Any]) -> str:
        """Generate cache key from connection name, SQL text and bindings"""
        payload = connection_name + sql + self.serialize_bindings(bindings)

        hasher = self._create_hasher()
        hasher.update(payload.encode("utf-8"))
        return f"{self.config.prefix}{hasher.hexdigest()}"

    def _create_hasher(self):
        """Create hasher based on configuration"""
        if self.algorithm == 'blake2b':
            return hashlib.blake2b(digest_size=self.config.hash_digest_size)
        elif self.algorithm == 'sha256':
            return hashlib.sha256()
        elif self.algorithm == 'sha1':
            return hashlib.sha1()
        return hashlib.md5()


def create_cache_key_generator(config: KeyGeneratorConfig = None) -> CacheKeyGenerator:
    """Factory function to create cache key generator"""
    return CacheKeyGenerator(config)

"""Database-backed cache service.

Values of any supported type are encoded with the MessagePack codec and
stored one row per key. Expiry is checked lazily when a key is read.
Batch operations take a ``prefix`` that is prepended to every key and loop
over the single-key operations; they stop at the first error and leave
whatever was already written or deleted in place.
"""

import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple

from core.codec import decode_value, encode_value
from core.config import Settings
from core.database import Database
from core.exceptions import DecodeError, PersistenceError
from core.logging import get_logger, log_cache_operation

logger = get_logger(__name__)


class CacheService:
    """Async key/value cache with TTL over the cache_entries table."""

    def __init__(self, settings: Settings, database: Database,
                 clock: Callable[[], float] = time.time):
        self.settings = settings
        self.database = database
        self.clock = clock

    async def set(self, key: str, value: Any, ttl: int = 0) -> None:
        """Store value under key for ttl seconds (default TTL when ttl <= 0)."""
        payload = encode_value(value)
        ttl = ttl if ttl > 0 else self.settings.cache_ttl
        await self.database.upsert_cache_entry(key, payload, self.clock() + ttl)
        log_cache_operation(logger, "set", key, ttl=ttl, size=len(payload))

    async def get(self, key: str) -> Tuple[Any, bool]:
        """Get value from cache as ``(value, found)``.

        Never raises: missing, expired and undecodable entries, as well as
        database failures, all come back as ``(None, False)``.
        """
        try:
            entry = await self.database.get_cache_entry(key)
        except PersistenceError as e:
            logger.error("Cache get failed", key=key, error=str(e))
            return None, False

        if entry is None:
            log_cache_operation(logger, "get", key, hit=False)
            return None, False

        try:
            value = decode_value(entry.value)
        except DecodeError as e:
            logger.warning("Discarding undecodable cache entry", key=key, error=str(e))
            return None, False

        log_cache_operation(logger, "get", key, hit=True)
        return value, True

    async def gets(self, keys: Iterable[str], prefix: str = "") -> Tuple[Dict[str, Any], List[str]]:
        """Get several keys. Returns hits keyed by unprefixed key, and misses in input order."""
        hits: Dict[str, Any] = {}
        missed: List[str] = []
        for key in keys:
            value, found = await self.get(prefix + key)
            if found:
                hits[key] = value
            else:
                missed.append(key)
        return hits, missed

    async def sets(self, values: Mapping[str, Any], prefix: str = "", ttl: int = 0) -> None:
        """Set several keys, stopping at the first failure."""
        for key, value in values.items():
            await self.set(prefix + key, value, ttl)

    async def delete(self, keys: Iterable[str], prefix: str = "") -> None:
        """Delete several keys, stopping at the first failure."""
        for key in keys:
            deleted = await self.database.delete_cache_entry(prefix + key)
            log_cache_operation(logger, "delete", prefix + key, deleted=bool(deleted))

    async def deletes(self, keys: Iterable[str], prefix: str = "") -> None:
        """Alias of delete."""
        await self.delete(keys, prefix)

    async def delete_all(self) -> int:
        """Remove every cached entry, whatever its prefix."""
        count = await self.database.delete_all_cache_entries()
        logger.info("Cache cleared", deleted=count)
        return count

    async def purge_expired(self) -> int:
        """Eagerly remove expired entries instead of waiting for them to be read."""
        return await self.database.purge_expired_cache_entries()

    async def persist(self, path: str) -> None:
        """No-op: entries already live in the database."""
        logger.debug("Cache persist skipped, database backend is durable", path=path)

    async def restore(self, path: str) -> None:
        """No-op counterpart of persist."""
        logger.debug("Cache restore skipped, database backend is durable", path=path)

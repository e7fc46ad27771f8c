"""Async database service with SQLModel and SQLAlchemy 2.0."""

import time
from typing import Callable, Optional
from sqlmodel import SQLModel, select
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from contextlib import asynccontextmanager

from core.config import Settings
from core.exceptions import PayloadTooLargeError, PersistenceError
from core.logging import get_logger
from models.cache import CacheEntry, VALUE_MAX_BYTES

logger = get_logger(__name__)


class Database:
    """Async database service with SQLModel.

    Owns the engine and session factory and implements the cache entry store:
    single-row CRUD keyed by ``key_name`` with delete-then-insert upserts and
    read-triggered purging of expired rows. Deletes are always hard deletes,
    regardless of the soft-delete marker.
    """

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self.settings = settings
        self.clock = clock
        self.engine = None
        self.async_session = None

    async def startup(self):
        """Initialize database connection and create tables."""
        try:
            engine_kwargs = {"echo": self.settings.database_echo}
            if ":memory:" not in self.settings.database_url:
                engine_kwargs["pool_size"] = self.settings.database_pool_size
                engine_kwargs["max_overflow"] = self.settings.database_max_overflow

            self.engine = create_async_engine(self.settings.database_url, **engine_kwargs)

            self.async_session = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)

            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error("Database startup failed", error=str(e))
            raise

    async def shutdown(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session = None
            logger.info("Database connections closed")

    @asynccontextmanager
    async def get_session(self):
        """Get async database session."""
        if not self.async_session:
            raise RuntimeError("Database not initialized")

        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    # ============================================================================
    # Cache Entries
    # ============================================================================

    async def upsert_cache_entry(self, key: str, value: bytes, expires_at: float) -> None:
        """Replace whatever is stored under key.

        The old row is hard-deleted and a new one inserted in two separate
        commits. A concurrent writer that inserts between them makes this
        insert fail on the unique key constraint, surfaced as PersistenceError.
        """
        if len(value) > VALUE_MAX_BYTES:
            raise PayloadTooLargeError(key, len(value), VALUE_MAX_BYTES)

        await self.delete_cache_entry(key)

        now = self.clock()
        try:
            async with self.get_session() as session:
                session.add(CacheEntry(
                    key_name=key,
                    value=value,
                    expires_at=expires_at,
                    created_at=now,
                    updated_at=now
                ))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to insert cache entry", key=key, error=str(e))
            raise PersistenceError("insert", key, str(e)) from e

    async def get_cache_entry(self, key: str) -> Optional[CacheEntry]:
        """Get the live entry for key. Returns None if missing or expired.

        An expired row is deleted on the way out. Failing to delete it is
        logged and otherwise ignored; the caller still sees a miss.
        """
        try:
            async with self.get_session() as session:
                stmt = (
                    select(CacheEntry)
                    .where(CacheEntry.key_name == key, CacheEntry.deleted_at.is_(None))
                    .limit(1)
                )
                result = await session.execute(stmt)
                entry = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Failed to get cache entry", key=key, error=str(e))
            raise PersistenceError("select", key, str(e)) from e

        if entry is None:
            return None

        if entry.is_expired(self.clock()):
            try:
                await self.purge_cache_entry(entry)
            except PersistenceError as e:
                logger.warning("Failed to purge expired cache entry", key=key, error=str(e))
            return None

        return entry

    async def purge_cache_entry(self, entry: CacheEntry) -> int:
        """Hard-delete one expired row.

        Matches on the row id and on expiry, so a fresh row written for the
        same key since ``entry`` was read is left alone even if SQLite reused
        the id.
        """
        stmt = delete(CacheEntry).where(
            CacheEntry.id == entry.id,
            CacheEntry.expires_at < self.clock()
        )
        return await self._delete(stmt, entry.key_name)

    async def delete_cache_entry(self, key: str) -> int:
        """Hard-delete every row for key. Missing keys are not an error."""
        return await self._delete(delete(CacheEntry).where(CacheEntry.key_name == key), key)

    async def delete_all_cache_entries(self) -> int:
        """Hard-delete every cache row, soft-deleted ones included."""
        return await self._delete(delete(CacheEntry), None)

    async def purge_expired_cache_entries(self) -> int:
        """Remove all expired cache entries. Returns count deleted."""
        count = await self._delete(
            delete(CacheEntry).where(CacheEntry.expires_at < self.clock()), None
        )
        if count > 0:
            logger.info("Purged expired cache entries", count=count)
        return count

    async def count_cache_entries(self, key: Optional[str] = None) -> int:
        """Count stored rows, optionally for a single key, whatever their state."""
        stmt = select(func.count()).select_from(CacheEntry)
        if key is not None:
            stmt = stmt.where(CacheEntry.key_name == key)
        try:
            async with self.get_session() as session:
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error("Failed to count cache entries", key=key, error=str(e))
            raise PersistenceError("count", key, str(e)) from e

    async def _delete(self, stmt, key: Optional[str]) -> int:
        try:
            async with self.get_session() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error("Failed to delete cache entries", key=key, error=str(e))
            raise PersistenceError("delete", key, str(e)) from e

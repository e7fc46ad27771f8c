"""Periodic sweep of expired cache entries.

Expiry is normally enforced when a key is read; this service only keeps
never-read keys from piling up. Disabled unless CLEANUP_INTERVAL > 0.
"""
import asyncio
from typing import Optional, TYPE_CHECKING

from core.logging import get_logger

if TYPE_CHECKING:
    from core.config import Settings
    from core.cache import CacheService

logger = get_logger(__name__)


class CleanupService:
    """Background task that purges expired cache entries at a fixed interval."""

    def __init__(self, cache: "CacheService", settings: "Settings"):
        self.cache = cache
        self.settings = settings
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.settings.cleanup_interval > 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the cleanup background task."""
        if self._running or not self.enabled:
            return
        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info("Cleanup service started", interval=self.settings.cleanup_interval)

    async def stop(self) -> None:
        """Stop the cleanup service gracefully."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Cleanup service stopped")

    async def _cleanup_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Cleanup failed", error=str(e))
            await asyncio.sleep(self.settings.cleanup_interval)

    async def run_once(self) -> int:
        """Run one sweep and return the number of entries removed."""
        return await self.cache.purge_expired()

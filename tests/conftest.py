"""Pytest configuration and shared fixtures."""

import pytest
import pytest_asyncio

from core.cache import CacheService
from core.config import Settings
from core.database import Database
from services.settings_cache import SettingsCache


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}",
        cache_ttl=3600,
        cleanup_interval=0,
    )


@pytest_asyncio.fixture
async def database(settings, clock):
    db = Database(settings, clock=clock)
    await db.startup()
    yield db
    await db.shutdown()


@pytest.fixture
def cache(settings, database, clock):
    return CacheService(settings, database, clock=clock)


@pytest.fixture
def settings_cache(cache):
    return SettingsCache(cache)

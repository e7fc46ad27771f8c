"""Dependency injection container for the cache."""

import time

from dependency_injector import containers, providers

from core.config import Settings
from core.database import Database
from core.cache import CacheService
from core.cleanup import CleanupService
from core.logging import configure_logging
from services.settings_cache import SettingsCache


class Container(containers.DeclarativeContainer):
    """Cache dependency injection container.

    Build one per process (or per test) and pass the providers' instances to
    call sites; nothing here is a module-level singleton.
    """

    # Settings
    settings = providers.Singleton(
        Settings,
    )

    # Applied by init_resources()
    logging_setup = providers.Resource(
        configure_logging,
        settings=settings
    )

    # Time source shared by the store and the cache so expiry stays consistent
    clock = providers.Object(time.time)

    database = providers.Singleton(
        Database,
        settings=settings,
        clock=clock
    )

    cache = providers.Singleton(
        CacheService,
        settings=settings,
        database=database,
        clock=clock
    )

    settings_cache = providers.Factory(
        SettingsCache,
        cache=cache
    )

    cleanup = providers.Singleton(
        CleanupService,
        cache=cache,
        settings=settings
    )

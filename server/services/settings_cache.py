"""String-typed cache for configuration values."""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from core.cache import CacheService
from core.exceptions import SettingTypeError
from core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SETTINGS_PREFIX = "setting_"


class SettingsCache:
    """Settings view over CacheService where every value is a string."""

    def __init__(self, cache: CacheService, prefix: str = DEFAULT_SETTINGS_PREFIX):
        self.cache = cache
        self.prefix = prefix

    async def get_settings(self, keys: Iterable[str],
                           prefix: Optional[str] = None) -> Tuple[Dict[str, str], List[str]]:
        """Get cached settings by name.

        Raises SettingTypeError if any hit is not a string.
        """
        raw, missed = await self.cache.gets(keys, self._prefix(prefix))

        settings: Dict[str, str] = {}
        for key, value in raw.items():
            if not isinstance(value, str):
                logger.error("Non-string value under settings key", key=key,
                             value_type=type(value).__name__)
                raise SettingTypeError(key, type(value))
            settings[key] = value
        return settings, missed

    async def set_settings(self, values: Mapping[str, str], prefix: Optional[str] = None) -> None:
        """Cache settings with the default TTL.

        Raises SettingTypeError before writing anything if a value is not a string.
        """
        for key, value in values.items():
            if not isinstance(value, str):
                raise SettingTypeError(key, type(value))
        await self.cache.sets(dict(values), self._prefix(prefix))

    def _prefix(self, prefix: Optional[str]) -> str:
        return self.prefix if prefix is None else prefix

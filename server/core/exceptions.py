"""Cache exception hierarchy."""

from typing import Optional


class CacheError(Exception):
    """Base exception for all cache errors."""


class EncodeError(CacheError):
    """A value could not be serialized for storage."""


class DecodeError(CacheError):
    """A stored payload could not be turned back into a value."""


class PayloadTooLargeError(EncodeError):
    """Encoded value does not fit in the value column."""

    def __init__(self, key: str, size: int, limit: int):
        self.key = key
        self.size = size
        self.limit = limit
        super().__init__(f"Payload for '{key}' is {size} bytes (limit {limit})")


class PersistenceError(CacheError):
    """Failure reported by the underlying database."""

    def __init__(self, operation: str, key: Optional[str], message: str):
        self.operation = operation
        self.key = key
        target = f" '{key}'" if key is not None else ""
        super().__init__(f"{operation}{target} failed: {message}")


class SettingTypeError(CacheError, TypeError):
    """A settings key holds something other than a string."""

    def __init__(self, key: str, value_type: type):
        self.key = key
        self.value_type = value_type
        super().__init__(f"Setting '{key}' holds {value_type.__name__}, expected str")

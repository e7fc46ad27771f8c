"""SQLite-backed cache table: one row per key with an opaque payload and expiry.

Rows carry the usual audit columns (created/updated/deleted) so the table
behaves like every other record in the database, but cache semantics only
look at ``key_name``, ``value`` and ``expires_at``.
"""

import time
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, LargeBinary, UniqueConstraint

# Capacity of the value column, in bytes
VALUE_MAX_BYTES = 2048


class CacheEntry(SQLModel, table=True):
    """Cached key with its encoded value and absolute expiry (Unix timestamp)."""

    __tablename__ = "cache_entries"
    __table_args__ = (
        UniqueConstraint("key_name", name="idx_only_one_key_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    key_name: str = Field(max_length=255)
    value: bytes = Field(sa_column=Column(LargeBinary(VALUE_MAX_BYTES), nullable=False))
    expires_at: float = Field(index=True)
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)
    deleted_at: Optional[float] = Field(default=None, index=True)  # soft-delete marker

    def is_expired(self, now: float) -> bool:
        """An entry is dead once ``now`` passes ``expires_at``."""
        return now > self.expires_at

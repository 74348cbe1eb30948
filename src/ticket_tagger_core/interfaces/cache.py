"""Abstract cache store interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ticket_tagger_core.models.cache import CacheRecord


@runtime_checkable
class CacheStore(Protocol):
    """Durable key/value storage of cache records with TTL eviction."""

    async def find_by_key(self, key: str) -> CacheRecord | None:
        """Return the live record for a key, or None if missing/expired."""
        ...

    async def upsert(self, record: CacheRecord) -> None:
        """Replace any record stored under ``record.key``."""
        ...

    async def clear(self) -> None:
        """Drop every record."""
        ...

    async def purge_expired(self) -> int:
        """Delete expired records, returning how many were removed."""
        ...

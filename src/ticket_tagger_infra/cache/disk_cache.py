"""diskcache-backed implementation of CacheStore."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

import diskcache
import structlog

from ticket_tagger_core.models.cache import CacheRecord
from ticket_tagger_infra.cache.codec import PayloadCodec, PayloadDecodeError

logger = structlog.get_logger()


class DiskCacheStore:
    """Persistent cache backed by diskcache (SQLite under the hood)."""

    def __init__(self, cache_dir: Path, codec: PayloadCodec, ttl_seconds: int) -> None:
        """Initialize with a cache directory."""
        cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(cache_dir))
        self._codec = codec
        self._ttl_seconds = ttl_seconds

    async def find_by_key(self, key: str) -> CacheRecord | None:
        """Retrieve a record by key; diskcache hides expired entries."""
        stored = await asyncio.to_thread(self._cache.get, key)
        if stored is None:
            return None
        try:
            payload = self._codec.decode(stored["payload"])
        except PayloadDecodeError:
            logger.warning("cache_record_undecodable", key=key)
            return None
        return CacheRecord(
            key=key,
            etag=stored["etag"],
            payload=payload,
            created_at=datetime.fromisoformat(stored["created_at"]),
        )

    async def upsert(self, record: CacheRecord) -> None:
        """Overwrite the record with a fresh TTL."""
        stored = {
            "etag": record.etag,
            "payload": self._codec.encode(record.payload),
            "created_at": record.created_at.isoformat(),
        }
        await asyncio.to_thread(
            self._cache.set, record.key, stored, expire=self._ttl_seconds
        )

    async def clear(self) -> None:
        """Delete every entry."""
        await asyncio.to_thread(self._cache.clear)

    async def purge_expired(self) -> int:
        """Remove expired entries from disk."""
        removed = await asyncio.to_thread(self._cache.expire)
        return int(removed)

    def close(self) -> None:
        """Close the cache."""
        self._cache.close()

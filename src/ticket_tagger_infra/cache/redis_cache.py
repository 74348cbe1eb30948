"""Redis-backed implementation of CacheStore."""

from __future__ import annotations

import json
from datetime import datetime

import structlog
from redis.asyncio import Redis

from ticket_tagger_core.models.cache import CacheRecord
from ticket_tagger_infra.cache.codec import PayloadCodec, PayloadDecodeError

logger = structlog.get_logger()

KEY_PREFIX = "tickettagger:cache:"


class RedisCacheStore:
    """Cache store backed by Redis; expiry is Redis' own key TTL."""

    def __init__(
        self,
        redis: Redis,  # type: ignore[type-arg]
        codec: PayloadCodec,
        ttl_seconds: int,
    ) -> None:
        """Initialize with a redis-py asyncio client."""
        self._redis = redis
        self._codec = codec
        self._ttl_seconds = ttl_seconds

    def _name(self, key: str) -> str:
        return f"{KEY_PREFIX}{key}"

    async def find_by_key(self, key: str) -> CacheRecord | None:
        """Retrieve a record by key."""
        value = await self._redis.get(self._name(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        stored = json.loads(value)
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
        value = json.dumps(
            {
                "etag": record.etag,
                "payload": self._codec.encode(record.payload),
                "created_at": record.created_at.isoformat(),
            }
        )
        await self._redis.set(
            name=self._name(record.key), value=value, ex=self._ttl_seconds
        )

    async def clear(self) -> None:
        """Delete every key under the cache prefix."""
        names = [name async for name in self._redis.scan_iter(match=f"{KEY_PREFIX}*")]
        if names:
            await self._redis.delete(*names)

    async def purge_expired(self) -> int:
        """Redis evicts expired keys itself."""
        return 0

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._redis.aclose()

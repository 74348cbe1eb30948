"""Database-backed implementation of CacheStore."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticket_tagger_core.models.cache import CacheRecord
from ticket_tagger_infra.cache.codec import PayloadCodec, PayloadDecodeError
from ticket_tagger_infra.db.models import CacheRecordModel

logger = structlog.get_logger()


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _is_expired(expires_at: datetime) -> bool:
    return _as_utc(expires_at) <= datetime.now(UTC)


class DBCacheStore:
    """Cache store backed by the application's database.

    Each operation runs in its own session so concurrent requests never
    share one.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        codec: PayloadCodec,
        ttl_seconds: int,
    ) -> None:
        """Initialize with a session factory, payload codec and record TTL."""
        self._session_factory = session_factory
        self._codec = codec
        self._ttl_seconds = ttl_seconds

    async def find_by_key(self, key: str) -> CacheRecord | None:
        """Return the live record for a key; expired rows are removed."""
        async with self._session_factory() as session:
            row = await session.get(CacheRecordModel, key)
            if row is None:
                return None
            if _is_expired(row.expires_at):
                # only while still expired; an upsert may have landed since the read
                await session.execute(
                    delete(CacheRecordModel).where(
                        CacheRecordModel.key == key,
                        CacheRecordModel.expires_at <= datetime.now(UTC),
                    )
                )
                await session.commit()
                return None
            try:
                payload = self._codec.decode(row.payload)
            except PayloadDecodeError:
                logger.warning("cache_record_undecodable", key=key)
                return None
            return CacheRecord(
                key=row.key,
                etag=row.etag,
                payload=payload,
                created_at=_as_utc(row.created_at),
            )

    async def upsert(self, record: CacheRecord) -> None:
        """Insert or overwrite the row for ``record.key`` in one statement."""
        values = {
            "key": record.key,
            "etag": record.etag,
            "payload": self._codec.encode(record.payload),
            "created_at": record.created_at,
            "expires_at": record.expires_at(self._ttl_seconds),
        }
        async with self._session_factory() as session:
            dialect = session.get_bind().dialect.name
            insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
            stmt = insert(CacheRecordModel).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[CacheRecordModel.key],
                set_={k: v for k, v in values.items() if k != "key"},
            )
            await session.execute(stmt)
            await session.commit()

    async def clear(self) -> None:
        """Delete every cache row."""
        async with self._session_factory() as session:
            await session.execute(delete(CacheRecordModel))
            await session.commit()

    async def purge_expired(self) -> int:
        """Bulk-delete expired rows."""
        async with self._session_factory() as session:
            result = await session.execute(
                delete(CacheRecordModel).where(
                    CacheRecordModel.expires_at <= datetime.now(UTC)
                )
            )
            await session.commit()
        removed = int(result.rowcount or 0)
        logger.info("cache_purged", removed=removed)
        return removed

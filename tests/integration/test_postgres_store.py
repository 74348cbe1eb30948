"""Integration tests for DBCacheStore against real PostgreSQL."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from ticket_tagger_core.models.cache import CacheRecord
from ticket_tagger_infra.cache.codec import PayloadCodec
from ticket_tagger_infra.cache.db_cache import DBCacheStore
from ticket_tagger_infra.db.session import create_session_factory
from tests.integration.conftest import require_postgres

pytestmark = [pytest.mark.integration, require_postgres]

CODEC = PayloadCodec("ab" * 32)
TTL = 3600


class TestPostgresCacheStore:
    """DBCacheStore on the postgresql dialect."""

    async def test_upsert_overwrites_existing_row(self, pg_engine: AsyncEngine) -> None:
        store = DBCacheStore(create_session_factory(pg_engine), CODEC, TTL)
        await store.upsert(CacheRecord(key="k1", etag='"v1"', payload={"n": 1}))
        await store.upsert(CacheRecord(key="k1", etag='"v2"', payload={"n": 2}))

        found = await store.find_by_key("k1")
        assert found is not None
        assert found.etag == '"v2"'
        assert found.payload == {"n": 2}

    async def test_purge_expired(self, pg_engine: AsyncEngine) -> None:
        store = DBCacheStore(create_session_factory(pg_engine), CODEC, TTL)
        stale = datetime.now(UTC) - timedelta(seconds=TTL + 60)
        await store.upsert(CacheRecord(key="old", etag='"a"', payload=1, created_at=stale))
        await store.upsert(CacheRecord(key="new", etag='"b"', payload=2))

        assert await store.purge_expired() == 1
        assert await store.find_by_key("old") is None
        assert await store.find_by_key("new") is not None

    async def test_clear(self, pg_engine: AsyncEngine) -> None:
        store = DBCacheStore(create_session_factory(pg_engine), CODEC, TTL)
        await store.upsert(CacheRecord(key="k1", etag='"v1"', payload=None))
        await store.clear()
        assert await store.find_by_key("k1") is None

"""Conditional GET requests backed by the ETag cache.

Every cacheable read to the GitHub API goes through ``ConditionalFetcher``.
A stored ETag turns the request into a conditional one; a 304 answer is
served from the cache without a body crossing the wire and without
counting against the rate limit.

Only GET is supported: the cache key binds URL and identity, not method
or body.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from ticket_tagger_core.exceptions import CacheProtocolError
from ticket_tagger_core.interfaces.cache import CacheStore
from ticket_tagger_core.models.cache import CacheRecord
from ticket_tagger_infra.cache.cache_keys import CacheKeyComputer
from ticket_tagger_infra.http.errors import ensure_success

logger = structlog.get_logger()


class ConditionalFetcher:
    """GET with ``If-None-Match`` revalidation against a CacheStore."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: CacheStore,
        key_computer: CacheKeyComputer,
    ) -> None:
        """Initialize with a shared HTTP client, cache store and key computer."""
        self._http = http
        self._store = store
        self._key_computer = key_computer

    async def fetch(self, url: str, headers: Mapping[str, str] | None = None) -> Any:
        """Return the (possibly cached) JSON body of ``GET url``.

        Raises:
            CacheProtocolError: The origin answered 304 but nothing is cached.
            PlatformRequestError: Any other non-2xx status.
        """
        request_headers = dict(headers or {})
        key = self._key_computer.compute_key(url, request_headers)
        record = await self._store.find_by_key(key)
        if record is not None:
            request_headers["If-None-Match"] = record.etag
        else:
            logger.debug("cache_miss", url=url)

        response = await self._http.get(url, headers=request_headers)

        if response.status_code == 304:
            if record is None:
                msg = f"origin answered 304 without a cache record for {url}"
                raise CacheProtocolError(msg)
            logger.debug("cache_hit", url=url)
            return record.payload

        ensure_success(response)
        payload = response.json()
        etag = response.headers.get("ETag")
        if not etag:
            logger.debug("cache_passthrough", url=url)
            return payload

        await self._store.upsert(CacheRecord(key=key, etag=etag, payload=payload))
        logger.debug("cache_store", url=url, revalidated=record is not None)
        return payload

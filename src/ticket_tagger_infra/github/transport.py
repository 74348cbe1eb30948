"""Shared HTTP + cache transport injected into every client tier."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from ticket_tagger_core.constants import GITHUB_ACCEPT
from ticket_tagger_core.interfaces.cache import CacheStore
from ticket_tagger_infra.cache.cache_keys import (
    AuthorizationCacheKeyComputer,
    CacheKeyComputer,
)
from ticket_tagger_infra.http.conditional_fetcher import ConditionalFetcher
from ticket_tagger_infra.http.errors import ensure_success


class GitHubTransport:
    """Builds requests to the GitHub REST API.

    Reads go through one of two conditional fetchers: ``identity_scoped``
    keys by URL and Authorization value, the other by URL alone. Writes
    are never cached.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: CacheStore,
        *,
        base_url: str,
        user_agent: str,
    ) -> None:
        """Initialize with a shared HTTP client and cache store."""
        self._http = http
        self.base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._shared_fetcher = ConditionalFetcher(http, store, CacheKeyComputer())
        self._scoped_fetcher = ConditionalFetcher(
            http, store, AuthorizationCacheKeyComputer()
        )

    def url(self, path: str) -> str:
        """Absolute API URL for a path."""
        return self.base_url + path

    def headers(
        self,
        authorization: str | None = None,
        extra: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Default headers plus an optional Authorization value."""
        headers = {"User-Agent": self._user_agent, "Accept": GITHUB_ACCEPT}
        if authorization is not None:
            headers["Authorization"] = authorization
        headers.update(extra or {})
        return headers

    async def get_cached(
        self,
        url: str,
        headers: Mapping[str, str],
        *,
        identity_scoped: bool = True,
    ) -> Any:
        """Conditional GET through the ETag cache."""
        fetcher = self._scoped_fetcher if identity_scoped else self._shared_fetcher
        return await fetcher.fetch(url, headers)

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        json: Any = None,
    ) -> httpx.Response:
        """Uncached request. Raises ``PlatformRequestError`` on failure."""
        response = await self._http.request(method, url, headers=dict(headers), json=json)
        ensure_success(response)
        return response

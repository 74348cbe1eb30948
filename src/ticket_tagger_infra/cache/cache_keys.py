"""Deterministic cache keys for GitHub API requests."""

from __future__ import annotations

import hashlib
from collections.abc import Iterator, Mapping, Sequence

import httpx

from ticket_tagger_core.constants import CACHE_NAMESPACE
from ticket_tagger_core.exceptions import MissingAuthorizationError

HeaderInput = httpx.Headers | Mapping[str, str] | Sequence[Sequence[str]] | None

_SEPARATOR = b"\x00"


class CacheKeyComputer:
    """Maps a request URL to a stable 128-bit cache key.

    Use for identity-agnostic requests only.
    """

    def compute_key(self, url: str, headers: HeaderInput = None) -> str:
        """Hash the key components into a hex digest."""
        digest = hashlib.blake2b(digest_size=16)
        for component in self._components(url, headers):
            digest.update(component.encode("utf-8"))
            digest.update(_SEPARATOR)
        return digest.hexdigest()

    def _components(self, url: str, headers: HeaderInput) -> Iterator[str]:
        yield CACHE_NAMESPACE
        yield url


class AuthorizationCacheKeyComputer(CacheKeyComputer):
    """Also folds the Authorization header value into the key.

    Two requests for the same URL under different credentials never
    share a key.
    """

    def _components(self, url: str, headers: HeaderInput) -> Iterator[str]:
        yield from super()._components(url, headers)
        if headers is None:
            msg = "headers are required for an identity-scoped cache key"
            raise MissingAuthorizationError(msg)
        authorization = extract_authorization(headers)
        if not authorization:
            msg = f"no authorization header found for {url}"
            raise MissingAuthorizationError(msg)
        yield authorization


def extract_authorization(headers: HeaderInput) -> str | None:
    """Find the Authorization value in any supported header representation.

    Sequences hold ``(name, value, ...)`` entries; every value of every
    Authorization entry is joined with ``|``.
    """
    if headers is None:
        return None
    if isinstance(headers, httpx.Headers):
        values = headers.get_list("authorization")
        return "|".join(values) if values else None
    if isinstance(headers, Mapping):
        value = headers.get("Authorization", headers.get("authorization"))
        if value is None:
            value = next(
                (v for k, v in headers.items() if k.lower() == "authorization"),
                None,
            )
        return value
    values = [
        "|".join(entry[1:])
        for entry in headers
        if entry and entry[0].lower() == "authorization"
    ]
    return "|".join(values) if values else None

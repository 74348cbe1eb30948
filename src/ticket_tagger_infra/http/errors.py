"""Mapping of GitHub HTTP failures onto the exception hierarchy."""

from __future__ import annotations

import httpx

from ticket_tagger_core.exceptions import (
    AuthenticationError,
    ConfigConflictError,
    PlatformRequestError,
    ResourceNotFoundError,
)

_ERRORS_BY_STATUS: dict[int, type[PlatformRequestError]] = {
    401: AuthenticationError,
    404: ResourceNotFoundError,
    409: ConfigConflictError,
}


def ensure_success(response: httpx.Response) -> None:
    """Raise a typed ``PlatformRequestError`` unless the response is 2xx or 304."""
    if response.is_success or response.status_code == 304:
        return
    url = str(response.request.url)
    error_cls = _ERRORS_BY_STATUS.get(response.status_code, PlatformRequestError)
    msg = (
        f'github api request failed for "{url}", '
        f'got "{response.status_code}: {response.reason_phrase}"'
    )
    raise error_cls(msg, status_code=response.status_code, url=url)

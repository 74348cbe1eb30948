"""App-level GitHub client: the entry point of the capability chain.

See https://docs.github.com/en/apps/creating-github-apps/authenticating-with-a-github-app
"""

from __future__ import annotations

import time
from typing import Any

import structlog
from jose import jwt

from ticket_tagger_core.constants import APP_TOKEN_LIFETIME_SECONDS
from ticket_tagger_core.models.github import Installation
from ticket_tagger_core.models.permissions import PermissionSet
from ticket_tagger_infra.github.credentials import InstallationCredential
from ticket_tagger_infra.github.installation_client import InstallationClient
from ticket_tagger_infra.github.transport import GitHubTransport

logger = structlog.get_logger()


class AppClient:
    """Holds the app private key and mints installation clients."""

    def __init__(
        self,
        transport: GitHubTransport,
        *,
        app_id: str,
        private_key: str,
        config_file_path: str,
    ) -> None:
        """Initialize with the transport and app credentials."""
        self._transport = transport
        self._app_id = app_id
        self._private_key = private_key
        self._config_file_path = config_file_path

    def create_app_token(self) -> str:
        """Sign a short-lived RS256 JWT identifying the app."""
        iat = int(time.time())
        claims = {"iat": iat, "exp": iat + APP_TOKEN_LIFETIME_SECONDS, "iss": self._app_id}
        return jwt.encode(claims, self._private_key, algorithm="RS256")

    def _headers(self) -> dict[str, str]:
        return self._transport.headers(f"Bearer {self.create_app_token()}")

    async def get_app(self) -> dict[str, Any]:
        """Get the authenticated app.

        Keyed without the JWT: every call signs a fresh one, and the
        response is the same for any token of this app.
        """
        url = self._transport.url("/app")
        app: dict[str, Any] = await self._transport.get_cached(
            url, self._headers(), identity_scoped=False
        )
        return app

    async def get_meta(self) -> dict[str, Any]:
        """Get GitHub meta information (hook IP ranges). Unauthenticated."""
        response = await self._transport.send(
            "GET", self._transport.url("/meta"), self._transport.headers()
        )
        meta: dict[str, Any] = response.json()
        return meta

    async def create_installation_client(
        self, installation: Installation
    ) -> InstallationClient:
        """Exchange the app identity for an installation access token."""
        url = self._transport.url(f"/app/installations/{installation.id}/access_tokens")
        response = await self._transport.send("POST", url, self._headers())
        body = response.json()
        credential = InstallationCredential(
            token=body["token"], installation_id=installation.id
        )
        permissions = PermissionSet.from_github(body.get("permissions"))
        logger.debug(
            "installation_token_created",
            installation_id=installation.id,
            permissions=sorted(p.value for p in permissions.grants),
        )
        return InstallationClient(
            self._transport,
            installation=installation,
            credential=credential,
            permissions=permissions,
            config_file_path=self._config_file_path,
        )

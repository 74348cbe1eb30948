"""Installation-level GitHub client."""

from __future__ import annotations

import structlog

from ticket_tagger_core.models.github import Installation, Repository
from ticket_tagger_core.models.permissions import PermissionSet, Resource
from ticket_tagger_infra.github.credentials import InstallationCredential
from ticket_tagger_infra.github.repository_client import RepositoryClient
from ticket_tagger_infra.github.transport import GitHubTransport

logger = structlog.get_logger()


class InstallationClient:
    """Acts with one installation's token and permissions.

    ``revoke_access_token`` is terminal: afterwards every method raises
    ``CredentialRevokedError``, as do repository clients minted from here.
    """

    def __init__(
        self,
        transport: GitHubTransport,
        *,
        installation: Installation,
        credential: InstallationCredential,
        permissions: PermissionSet,
        config_file_path: str,
    ) -> None:
        """Initialize with the transport, the installation and its token."""
        self._transport = transport
        self.installation = installation
        self._credential = credential
        self._permissions = permissions
        self._config_file_path = config_file_path

    @property
    def revoked(self) -> bool:
        """Whether the installation token has been revoked."""
        return self._credential.revoked

    @property
    def permissions(self) -> PermissionSet:
        """Permissions granted to the installation token.

        Raises:
            CredentialRevokedError: The token was revoked.
        """
        self._credential.ensure_active()
        return self._permissions

    def can_read(self, resource: Resource) -> bool:
        """Whether the token may read ``resource``."""
        return self.permissions.can_read(resource)

    def can_write(self, resource: Resource) -> bool:
        """Whether the token may write ``resource``."""
        return self.permissions.can_write(resource)

    def create_repository_client(self, repository: Repository) -> RepositoryClient:
        """Scope this installation's token to one repository."""
        self._credential.ensure_active()
        return RepositoryClient(
            self._transport,
            credential=self._credential,
            repository=repository,
            config_file_path=self._config_file_path,
        )

    async def revoke_access_token(self) -> None:
        """Revoke the installation token.

        See https://docs.github.com/en/rest/apps/installations#revoke-an-installation-access-token
        """
        headers = self._transport.headers(self._credential.authorization)
        await self._transport.send(
            "DELETE", self._transport.url("/installation/token"), headers
        )
        self._credential.revoked = True
        logger.debug(
            "installation_token_revoked", installation_id=self.installation.id
        )

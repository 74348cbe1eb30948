"""Installation access credential shared by installation and repository tiers."""

from __future__ import annotations

from dataclasses import dataclass

from ticket_tagger_core.exceptions import CredentialRevokedError


@dataclass
class InstallationCredential:
    """An installation token. Revocation is terminal."""

    token: str
    installation_id: int
    revoked: bool = False

    @property
    def authorization(self) -> str:
        """Authorization header value. Fails once the token is revoked."""
        self.ensure_active()
        return f"token {self.token}"

    def ensure_active(self) -> None:
        """Raise CredentialRevokedError once the token has been revoked."""
        if self.revoked:
            msg = f"installation {self.installation_id} token was revoked"
            raise CredentialRevokedError(msg)

    def __repr__(self) -> str:
        return (
            f"InstallationCredential(installation_id={self.installation_id}, "
            f"revoked={self.revoked})"
        )

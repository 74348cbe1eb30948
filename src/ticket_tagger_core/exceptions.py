"""Custom exception hierarchy for ticket-tagger."""

from __future__ import annotations


class TicketTaggerError(Exception):
    """Base exception for all ticket-tagger errors."""


class SignatureVerificationError(TicketTaggerError):
    """Raised when a webhook delivery fails signature verification."""


class MalformedSignatureError(SignatureVerificationError):
    """Raised when signature headers are missing or not in `algo=hex` form."""


class SignatureMismatchError(SignatureVerificationError):
    """Raised when a signature does not match the delivery body."""


class CacheProtocolError(TicketTaggerError):
    """Raised when the origin answers 304 to a request we never made conditional."""


class MissingAuthorizationError(TicketTaggerError):
    """Raised when an identity-scoped cache key is computed without credentials."""


class PlatformRequestError(TicketTaggerError):
    """Raised when a GitHub API request returns a non-2xx, non-304 status."""

    def __init__(self, message: str, *, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AuthenticationError(PlatformRequestError):
    """Raised on 401: the credential is expired or revoked."""


class ResourceNotFoundError(PlatformRequestError):
    """Raised on 404."""


class ConfigConflictError(PlatformRequestError):
    """Raised on 409: a config write carried a stale sha."""


class CredentialRevokedError(TicketTaggerError):
    """Raised when an installation credential is used after revocation."""


class ConfigFormatError(TicketTaggerError):
    """Raised when the repository config envelope is not a base64 file."""


class ConfigValidationError(TicketTaggerError):
    """Raised when a submitted repository config violates the schema."""


class ClassifierError(TicketTaggerError):
    """Raised when the classifier is not ready or its model is unavailable."""

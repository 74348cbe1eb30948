"""Encryption of cached payloads at rest.

Stores never see a plaintext payload: they call ``encode`` before writing
and ``decode`` after reading. The in-memory ``CacheRecord`` always holds
plaintext.
"""

from __future__ import annotations

import base64
import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from ticket_tagger_core.exceptions import TicketTaggerError


class PayloadDecodeError(TicketTaggerError):
    """Raised when a stored payload cannot be decrypted or parsed."""


class PayloadCodec:
    """Fernet (AES-128-CBC + HMAC-SHA256) codec keyed by a 32-byte hex secret."""

    def __init__(self, key_hex: str) -> None:
        """Initialize from 64 hex digits."""
        key = bytes.fromhex(key_hex)
        if len(key) != 32:
            msg = "encryption key must be 32 bytes (64 hex digits)"
            raise ValueError(msg)
        self._fernet = Fernet(base64.urlsafe_b64encode(key))

    def encode(self, payload: Any) -> str:
        """Serialize a payload to JSON and encrypt it."""
        plaintext = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return self._fernet.encrypt(plaintext).decode("ascii")

    def decode(self, token: str) -> Any:
        """Decrypt and deserialize a payload written by ``encode``."""
        try:
            plaintext = self._fernet.decrypt(token.encode("ascii"))
        except InvalidToken as exc:
            msg = "cached payload could not be decrypted"
            raise PayloadDecodeError(msg) from exc
        return json.loads(plaintext)

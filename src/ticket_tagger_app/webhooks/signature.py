"""Webhook delivery signature verification.

GitHub signs each delivery with the shared secret and sends the HMAC in
``X-Hub-Signature`` (SHA-1) and ``X-Hub-Signature-256`` (SHA-256). Every
header that is present must verify, and at least one must be present.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Mapping

from ticket_tagger_core.exceptions import MalformedSignatureError, SignatureMismatchError

SIGNATURE_HEADERS: dict[str, str] = {
    "x-hub-signature-256": "sha256",
    "x-hub-signature": "sha1",
}


def sign(body: bytes, secret: str, algorithm: str = "sha256") -> str:
    """Return the ``algo=hexdigest`` signature GitHub would send for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, getattr(hashlib, algorithm))
    return f"{algorithm}={digest.hexdigest()}"


def verify_signature(body: bytes, secret: str, headers: Mapping[str, str]) -> None:
    """Check every signature header present against ``body``.

    Raises:
        MalformedSignatureError: No signature header, or one not in ``algo=hex`` form.
        SignatureMismatchError: A signature does not match.
    """
    lowered = {name.lower(): value for name, value in headers.items()}
    present = {
        name: algorithm for name, algorithm in SIGNATURE_HEADERS.items() if name in lowered
    }
    if not present:
        msg = "missing signature header"
        raise MalformedSignatureError(msg)

    for name, algorithm in present.items():
        received = lowered[name]
        prefix, _, hexdigest = received.partition("=")
        if prefix != algorithm or not hexdigest:
            msg = f"malformed {name} header"
            raise MalformedSignatureError(msg)
        if not hmac.compare_digest(sign(body, secret, algorithm), received):
            msg = f"{name} does not match the delivery body"
            raise SignatureMismatchError(msg)

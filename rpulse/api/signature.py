"""HMAC-SHA256 verification of GitHub webhook deliveries."""

from __future__ import annotations

import hashlib
import hmac
import string

from rpulse.api.errors import InvalidSignatureError

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Return the ``sha256=<hex>`` header value GitHub sends for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, body: bytes, header: str | None) -> None:
    """Check ``header`` against the HMAC of ``body``.

    The ``sha256=`` prefix is optional. Digests are compared in constant
    time.

    Raises
    ------
    InvalidSignatureError
        If the header is absent, not a hex digest, or does not match.

    """
    if not header:
        raise InvalidSignatureError.missing()
    received = header.strip().removeprefix(SIGNATURE_PREFIX).lower()
    if not received or any(char not in string.hexdigits for char in received):
        raise InvalidSignatureError.malformed()
    expected = compute_signature(secret, body).removeprefix(SIGNATURE_PREFIX)
    if not hmac.compare_digest(expected, received):
        raise InvalidSignatureError.mismatch()


__all__ = [
    "SIGNATURE_HEADER",
    "SIGNATURE_PREFIX",
    "compute_signature",
    "verify_signature",
]

"""PKCE (RFC 7636) verifier/challenge generation for the device flow.

A fresh pair is generated for every login attempt and never persisted.
"""

from __future__ import annotations

__all__ = [
    "PKCEPair",
    "generate_code_challenge",
    "generate_code_verifier",
]

import base64
import hashlib
import secrets
from dataclasses import dataclass, field

from tokendokey.constants import PKCE_METHOD, PKCE_VERIFIER_BYTES


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Generate a code verifier from 43 cryptographically random bytes.

    Returns:
        Unpadded base64url string (58 characters).
    """
    return _b64url(secrets.token_bytes(PKCE_VERIFIER_BYTES))


def generate_code_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    Args:
        verifier: Code verifier string.

    Returns:
        Unpadded base64url SHA-256 digest of the verifier's ASCII bytes.
    """
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


@dataclass(frozen=True)
class PKCEPair:
    """Verifier and challenge for one device login attempt.

    Attributes:
        verifier: Secret sent only when polling the token endpoint.
        challenge: Sent with the device authorization request.
        method: Always "S256".
    """

    verifier: str = field(repr=False)
    challenge: str
    method: str = PKCE_METHOD

    @classmethod
    def generate(cls) -> "PKCEPair":
        """Create a new random pair."""
        verifier = generate_code_verifier()
        return cls(verifier=verifier, challenge=generate_code_challenge(verifier))

"""Token validity policy for cached bearer tokens.

Decides whether a cached access or refresh token may be reused. Tokens are
decoded as JWTs WITHOUT signature verification: the tokens were obtained
from the issuer over a channel this tool authenticated itself, and only the
`exp` claim is needed, not authenticity.

Callers depend on the TokenValidator protocol so a verifying implementation
can be swapped in without touching them.
"""

from __future__ import annotations

__all__ = [
    "TOKEN_MARGINS",
    "TokenKind",
    "TokenValidator",
    "UnverifiedExpiryValidator",
    "decode_claims",
    "is_token_valid",
    "token_expiry",
]

import time
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Protocol

import jwt

from tokendokey.constants import ACCESS_TOKEN_MARGIN_SECONDS, REFRESH_TOKEN_MARGIN_SECONDS

TokenKind = Literal["access", "refresh"]

# Seconds subtracted from exp before comparing to now
TOKEN_MARGINS: dict[str, int] = {
    "access": ACCESS_TOKEN_MARGIN_SECONDS,
    "refresh": REFRESH_TOKEN_MARGIN_SECONDS,
}


class TokenValidator(Protocol):
    """Decides whether a bearer token string is still usable."""

    def is_valid(self, token: str, kind: TokenKind) -> bool:
        """Return True if the token can be used for the next request."""
        ...


def decode_claims(token: str) -> dict[str, Any] | None:
    """Decode JWT claims without validating the signature.

    WARNING: Does not validate signature! Only the expiry is trusted,
    never identity claims.

    Args:
        token: JWT token string.

    Returns:
        Claims dict, or None if the token is not a decodable JWT.
    """
    if not token or not token.strip():
        return None
    try:
        claims: dict[str, Any] = jwt.decode(token.strip(), options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    return claims


def _numeric_exp(claims: dict[str, Any]) -> float | None:
    exp = claims.get("exp")
    # bool is an int subclass; true/false is not an expiry
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


class UnverifiedExpiryValidator:
    """Validity check based on the unverified `exp` claim.

    Fails closed: empty strings, undecodable tokens and tokens with a
    missing or non-numeric `exp` are invalid. A token is valid only while
    `now < exp - margin` (30s for access tokens, 60s for refresh tokens).

    Example:
        validator = UnverifiedExpiryValidator()
        if validator.is_valid(cached_access_token, "access"):
            return cached_access_token
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Initialize validator.

        Args:
            clock: Returns the current Unix time (injectable for tests).
        """
        self._clock = clock

    def is_valid(self, token: str, kind: TokenKind) -> bool:
        """Check token expiry against the safety margin for its kind.

        Args:
            token: Raw bearer token.
            kind: "access" or "refresh".

        Returns:
            True if the token is a JWT whose exp is beyond now + margin.
        """
        claims = decode_claims(token)
        if claims is None:
            return False

        exp = _numeric_exp(claims)
        if exp is None:
            return False

        return self._clock() < exp - TOKEN_MARGINS[kind]


_default_validator = UnverifiedExpiryValidator()


def is_token_valid(token: str, kind: TokenKind) -> bool:
    """Check a token with the default (unverified expiry) validator."""
    return _default_validator.is_valid(token, kind)


def token_expiry(token: str) -> datetime | None:
    """Expiry instant of a JWT, for display.

    Returns:
        UTC datetime from the exp claim, or None if unavailable.
    """
    claims = decode_claims(token)
    if claims is None:
        return None
    exp = _numeric_exp(claims)
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None

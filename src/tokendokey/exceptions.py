"""Custom exceptions for tokendokey.

All errors raised by the token lifecycle engine derive from TokenDokeyError.
Nothing here is fatal to the host process: the CLI catches TokenDokeyError,
prints the message and exits with the error's exit code.

Error kinds:
    - ConfigNotFoundError: client profile not initialized
    - ConfigMalformedError: config.json unreadable or invalid
    - InvalidClientNameError: client name is not a single path component
    - TokenUnreadableError: token file exists but cannot be read
    - TokenInvalidError / LoginRequiredError: no usable cached token
    - NetworkFailureError: transport-level HTTP failure
    - IssuerError: non-200 or explicit OAuth error from the issuer
    - TLSIdentityError: client certificate/key/CA cannot be used

Usage:
    from tokendokey.exceptions import IssuerError, LoginRequiredError
"""

from __future__ import annotations

__all__ = [
    "ConfigMalformedError",
    "ConfigNotFoundError",
    "ConfigurationError",
    "InvalidClientNameError",
    "IssuerError",
    "LoginRequiredError",
    "NetworkFailureError",
    "TLSIdentityError",
    "TokenDokeyError",
    "TokenInvalidError",
    "TokenUnreadableError",
]

from typing import Any


class TokenDokeyError(Exception):
    """Base exception for all tokendokey failures.

    Attributes:
        exit_code: Process exit code used by the CLI.
        failure_type: Category string for logging.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(TokenDokeyError):
    """Client configuration is missing or invalid."""

    exit_code = 2
    failure_type = "configuration_failure"


class ConfigNotFoundError(ConfigurationError):
    """No config.json for the client (client was never initialized).

    Raised when:
    - The client directory does not exist
    - The directory exists but config.json is missing
    """

    failure_type = "config_not_found"


class ConfigMalformedError(ConfigurationError):
    """config.json exists but contains invalid JSON or fails validation."""

    failure_type = "config_malformed"


class InvalidClientNameError(TokenDokeyError):
    """Client name is empty, "." or "..", or contains a path separator."""

    exit_code = 1
    failure_type = "invalid_client_name"


# =============================================================================
# Cached tokens
# =============================================================================


class TokenUnreadableError(TokenDokeyError):
    """A token file exists but could not be read (permissions, I/O error)."""

    exit_code = 3
    failure_type = "token_unreadable"


class TokenInvalidError(TokenDokeyError):
    """A cached token failed the validity check."""

    exit_code = 4
    failure_type = "token_invalid"


class LoginRequiredError(TokenInvalidError):
    """Neither cached access token nor refresh token is usable.

    The caller has to run an acquisition flow explicitly (device login
    or mTLS direct grant) because they need different credentials.
    """

    failure_type = "login_required"


# =============================================================================
# Network and issuer
# =============================================================================


class NetworkFailureError(TokenDokeyError):
    """Transport-level failure talking to the issuer (DNS, connect, TLS, timeout)."""

    exit_code = 5
    failure_type = "network_failure"


class IssuerError(TokenDokeyError):
    """The issuer answered, but not with a usable result.

    Raised for non-200 responses, explicit OAuth ``error`` fields, bodies
    that are not JSON, and 200 responses without an access_token.

    Attributes:
        status_code: HTTP status of the response, if any.
        error: OAuth error code (e.g., "invalid_grant"), if present.
        error_description: OAuth error_description, if present.
        body: Raw response body for diagnostics.
    """

    exit_code = 6
    failure_type = "issuer_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error: str | None = None,
        error_description: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error
        self.error_description = error_description
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        """Structured details for logging."""
        data: dict[str, Any] = {"message": self.message}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        if self.error is not None:
            data["error"] = self.error
        if self.error_description is not None:
            data["error_description"] = self.error_description
        return data

    def __str__(self) -> str:
        return self.message


# =============================================================================
# mTLS
# =============================================================================


class TLSIdentityError(TokenDokeyError):
    """Client certificate, key or CA bundle cannot be loaded or is expired."""

    exit_code = 7
    failure_type = "tls_identity_error"

"""Authentication audit logger.

Logs token lifecycle events to auth.jsonl:
- Access token served from cache
- Token refresh (success/failure)
- Device login completed
- mTLS direct grant completed
- Logout

Token values are never written; events carry a short SHA-256 fingerprint
so entries can be correlated with the files on disk.
"""

from __future__ import annotations

__all__ = [
    "AuthEvent",
    "AuthLogger",
    "create_auth_logger",
]

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from tokendokey.constants import APP_NAME
from tokendokey.utils.logging_helpers import serialize_event, setup_jsonl_logger, token_fingerprint

if TYPE_CHECKING:
    from tokendokey.security.auth.token_storage import TokenPair

GrantType = Literal["cache", "refresh_token", "device_code", "password"]


class AuthEvent(BaseModel):
    """One token lifecycle log entry (auth.jsonl).

    Note: 'time' is None when created, populated by ISO8601Formatter during logging.
    """

    time: str | None = Field(
        None,
        description="ISO 8601 timestamp, added by formatter during serialization",
    )

    event_type: Literal[
        "token_served_from_cache",
        "token_refreshed",
        "device_login_completed",
        "direct_grant_completed",
        "token_request_failed",
        "logout",
    ]
    status: Literal["Success", "Failure"]
    client_name: str
    grant: GrantType | None = None
    message: str | None = None

    # --- token references (fingerprints only) ---
    access_token: str | None = None
    refresh_token: str | None = None
    refresh_token_rotated: bool | None = None

    # --- grant details ---
    offline: bool | None = None
    server_verified: bool | None = None

    # --- failures ---
    error_type: str | None = None
    error_message: str | None = None


class AuthLogger:
    """Audit logger for token lifecycle events.

    Usage:
        auth_logger = create_auth_logger(get_log_dir() / "auth.jsonl")
        auth_logger.log_token_refreshed("acme", tokens, rotated=True)
    """

    def __init__(self, logger: logging.Logger) -> None:
        """Initialize auth logger.

        Args:
            logger: Configured logger (normally a JSONL file logger).
        """
        self._logger = logger

    @classmethod
    def disabled(cls) -> "AuthLogger":
        """Auth logger that drops every event."""
        logger = logging.getLogger(f"{APP_NAME}.audit.auth.disabled")
        logger.propagate = False
        if not logger.handlers:
            logger.addHandler(logging.NullHandler())
        return cls(logger)

    def _log_event(self, event: AuthEvent) -> None:
        data = serialize_event(event)
        if event.status == "Failure":
            self._logger.warning(data)
        else:
            self._logger.info(data)

    def log_token_served_from_cache(self, client_name: str, access_token: str) -> None:
        """Log that a still-valid cached access token was returned."""
        self._log_event(
            AuthEvent(
                event_type="token_served_from_cache",
                status="Success",
                client_name=client_name,
                grant="cache",
                access_token=token_fingerprint(access_token),
            )
        )

    def log_token_refreshed(self, client_name: str, tokens: "TokenPair", *, rotated: bool) -> None:
        """Log a successful refresh_token grant.

        Args:
            client_name: Client profile name.
            tokens: New token pair.
            rotated: True if the issuer returned a different refresh token.
        """
        self._log_event(
            AuthEvent(
                event_type="token_refreshed",
                status="Success",
                client_name=client_name,
                grant="refresh_token",
                access_token=token_fingerprint(tokens.access_token),
                refresh_token=token_fingerprint(tokens.refresh_token),
                refresh_token_rotated=rotated,
            )
        )

    def log_device_login_completed(
        self, client_name: str, tokens: "TokenPair", *, offline: bool
    ) -> None:
        """Log a completed device authorization login."""
        self._log_event(
            AuthEvent(
                event_type="device_login_completed",
                status="Success",
                client_name=client_name,
                grant="device_code",
                access_token=token_fingerprint(tokens.access_token),
                refresh_token=token_fingerprint(tokens.refresh_token),
                offline=offline,
            )
        )

    def log_direct_grant_completed(
        self, client_name: str, tokens: "TokenPair", *, server_verified: bool
    ) -> None:
        """Log a completed mTLS direct grant."""
        self._log_event(
            AuthEvent(
                event_type="direct_grant_completed",
                status="Success",
                client_name=client_name,
                grant="password",
                access_token=token_fingerprint(tokens.access_token),
                refresh_token=token_fingerprint(tokens.refresh_token),
                server_verified=server_verified,
            )
        )

    def log_token_request_failed(
        self, client_name: str, grant: GrantType, error: Exception
    ) -> None:
        """Log a failed token request of any grant type."""
        self._log_event(
            AuthEvent(
                event_type="token_request_failed",
                status="Failure",
                client_name=client_name,
                grant=grant,
                error_type=type(error).__name__,
                error_message=str(error),
            )
        )

    def log_logout(self, client_name: str) -> None:
        """Log that cached tokens were cleared."""
        self._log_event(
            AuthEvent(
                event_type="logout",
                status="Success",
                client_name=client_name,
                message="Cached tokens cleared",
            )
        )


def create_auth_logger(log_path: Path) -> AuthLogger:
    """Create an auth logger writing JSONL to log_path.

    Args:
        log_path: Path to auth.jsonl.

    Returns:
        AuthLogger: Configured logger for token lifecycle events.

    Raises:
        OSError: If the log directory or file cannot be created.
    """
    logger = setup_jsonl_logger(f"{APP_NAME}.audit.auth", log_path, log_level=logging.INFO)
    return AuthLogger(logger)

"""Token lifecycle orchestration for one client profile.

TokenService decides, per request, which single flow runs:

    cached access valid   -> return it (no network)
    cached refresh valid  -> refresh_token grant, persist, return
    otherwise             -> the caller must acquire tokens explicitly
                             (device login or mTLS direct grant)

The client config is loaded per call and passed into the flow; nothing
is cached between calls.
"""

from __future__ import annotations

__all__ = [
    "TokenService",
    "TokenStatus",
]

import time
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

import httpx

from tokendokey.exceptions import LoginRequiredError, TokenDokeyError
from tokendokey.security.auth.device_flow import DeviceCodeResponse, PollOnceResult, run_device_flow
from tokendokey.security.auth.direct_grant import request_direct_grant_tokens
from tokendokey.security.auth.token_refresh import refresh_tokens
from tokendokey.security.auth.token_storage import TokenPair
from tokendokey.security.auth.token_validator import (
    TokenValidator,
    UnverifiedExpiryValidator,
    token_expiry,
)
from tokendokey.telemetry.auth_logger import AuthLogger

if TYPE_CHECKING:
    from tokendokey.config import ClientConfig, MTLSIdentity
    from tokendokey.security.credential_storage import CredentialStore


@dataclass(frozen=True)
class TokenStatus:
    """Validity of a client's cached tokens, for `tokendokey status`."""

    client_name: str
    has_access_token: bool
    access_token_valid: bool
    access_token_expires_at: datetime | None
    has_refresh_token: bool
    refresh_token_valid: bool
    refresh_token_expires_at: datetime | None

    @property
    def logged_in(self) -> bool:
        """True if get_token() would succeed without a new login."""
        return self.access_token_valid or self.refresh_token_valid

    def to_dict(self) -> dict[str, Any]:
        return {
            "client": self.client_name,
            "logged_in": self.logged_in,
            "access_token": {
                "present": self.has_access_token,
                "valid": self.access_token_valid,
                "expires_at": self.access_token_expires_at.isoformat() if self.access_token_expires_at else None,
            },
            "refresh_token": {
                "present": self.has_refresh_token,
                "valid": self.refresh_token_valid,
                "expires_at": self.refresh_token_expires_at.isoformat() if self.refresh_token_expires_at else None,
            },
        }


class TokenService:
    """Serves access tokens for named clients, refreshing when needed.

    Usage:
        service = TokenService(CredentialStore())
        token = service.get_token("acme")
    """

    def __init__(
        self,
        store: "CredentialStore",
        validator: TokenValidator | None = None,
        http_client: httpx.Client | None = None,
        auth_logger: AuthLogger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize token service.

        Args:
            store: Config and token persistence.
            validator: Token validity policy (unverified JWT expiry by default).
            http_client: Optional httpx client shared by the flows (for testing).
                Not used for the mTLS direct grant, which needs its own TLS context.
            auth_logger: Audit logger for token events (disabled by default).
            sleep: Delay function for device flow polling.
        """
        self._store = store
        self._validator = validator or UnverifiedExpiryValidator()
        self._http_client = http_client
        self._auth_logger = auth_logger or AuthLogger.disabled()
        self._sleep = sleep

    # -------------------------------------------------------------------------
    # Cached token path
    # -------------------------------------------------------------------------

    def get_token(self, client_name: str, force: bool = False) -> str:
        """Return a usable access token, refreshing if necessary.

        Args:
            client_name: Client profile name.
            force: Skip the cached access token and refresh even if it is valid.

        Returns:
            Access token string.

        Raises:
            ConfigNotFoundError: If the client is not initialized.
            LoginRequiredError: If neither cached token is usable.
            TokenRefreshError: If the refresh is rejected (no fallback).
            NetworkFailureError: If the issuer cannot be reached.
        """
        config = self._store.load_config(client_name)
        tokens = self._store.load_tokens(client_name)

        cached = self._cached_access_token(client_name, tokens, force=force)
        if cached is not None:
            return cached

        if self._validator.is_valid(tokens.refresh_token, "refresh"):
            return self._refresh(client_name, config, tokens).access_token

        raise LoginRequiredError(
            f"No valid token for client '{client_name}'. "
            f"Run 'tokendokey login -c {client_name}' to authenticate."
        )

    def _cached_access_token(self, client_name: str, tokens: TokenPair, *, force: bool) -> str | None:
        if force or not self._validator.is_valid(tokens.access_token, "access"):
            return None
        self._auth_logger.log_token_served_from_cache(client_name, tokens.access_token)
        return tokens.access_token

    def _refresh(self, client_name: str, config: "ClientConfig", tokens: TokenPair) -> TokenPair:
        try:
            new_tokens = refresh_tokens(config, tokens.refresh_token, http_client=self._http_client)
        except TokenDokeyError as e:
            self._auth_logger.log_token_request_failed(client_name, "refresh_token", e)
            raise

        self._store.save_tokens(client_name, new_tokens)
        self._auth_logger.log_token_refreshed(
            client_name,
            new_tokens,
            rotated=new_tokens.refresh_token != tokens.refresh_token,
        )
        return new_tokens

    # -------------------------------------------------------------------------
    # Acquisition flows
    # -------------------------------------------------------------------------

    def login(
        self,
        client_name: str,
        display_callback: Callable[[DeviceCodeResponse], None],
        wait_for_operator: Callable[[], None],
        offline: bool = False,
        poll_callback: Callable[[PollOnceResult], None] | None = None,
    ) -> TokenPair:
        """Run the device authorization flow and store the resulting tokens.

        Raises:
            ConfigNotFoundError: If the client is not initialized.
            DeviceFlowConfigError: If no device endpoint is configured.
            DeviceFlowError: If the issuer rejects the login.
            NetworkFailureError: If the issuer cannot be reached.
        """
        config = self._store.load_config(client_name)
        try:
            tokens = run_device_flow(
                config,
                display_callback,
                wait_for_operator,
                offline=offline,
                poll_callback=poll_callback,
                http_client=self._http_client,
                sleep=self._sleep,
            )
        except TokenDokeyError as e:
            self._auth_logger.log_token_request_failed(client_name, "device_code", e)
            raise

        self._store.save_tokens(client_name, tokens)
        self._auth_logger.log_device_login_completed(client_name, tokens, offline=offline)
        return tokens

    def get_mtls_token(
        self,
        client_name: str,
        identity: "MTLSIdentity",
        mtls_http_client: httpx.Client | None = None,
    ) -> str:
        """Return a usable access token, falling back to the mTLS direct grant.

        Cached access -> refresh -> direct grant; the first usable result
        wins. Unlike get_token(), a failed refresh is not retried via the
        direct grant.

        Args:
            client_name: Client profile name.
            identity: Client certificate material for the direct grant.
            mtls_http_client: Optional client for the direct grant (for testing).

        Raises:
            ConfigNotFoundError: If the client is not initialized.
            TLSIdentityError: If the certificate material cannot be used.
            DirectGrantError: If the issuer rejects the direct grant.
            TokenRefreshError: If the refresh is rejected.
            NetworkFailureError: If the issuer cannot be reached.
        """
        config = self._store.load_config(client_name)
        tokens = self._store.load_tokens(client_name)

        cached = self._cached_access_token(client_name, tokens, force=False)
        if cached is not None:
            return cached

        if self._validator.is_valid(tokens.refresh_token, "refresh"):
            return self._refresh(client_name, config, tokens).access_token

        try:
            new_tokens = request_direct_grant_tokens(config, identity, http_client=mtls_http_client)
        except TokenDokeyError as e:
            self._auth_logger.log_token_request_failed(client_name, "password", e)
            raise

        self._store.save_tokens(client_name, new_tokens)
        self._auth_logger.log_direct_grant_completed(
            client_name, new_tokens, server_verified=identity.verifies_server
        )
        return new_tokens.access_token

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def logout(self, client_name: str) -> None:
        """Clear both cached tokens; the config is kept.

        Raises:
            ConfigNotFoundError: If the client is not initialized.
        """
        self._store.load_config(client_name)
        self._store.clear_tokens(client_name)
        self._auth_logger.log_logout(client_name)

    def status(self, client_name: str) -> TokenStatus:
        """Report validity and expiry of the cached tokens (no network)."""
        self._store.load_config(client_name)
        tokens = self._store.load_tokens(client_name)
        return TokenStatus(
            client_name=client_name,
            has_access_token=bool(tokens.access_token),
            access_token_valid=self._validator.is_valid(tokens.access_token, "access"),
            access_token_expires_at=token_expiry(tokens.access_token),
            has_refresh_token=bool(tokens.refresh_token),
            refresh_token_valid=self._validator.is_valid(tokens.refresh_token, "refresh"),
            refresh_token_expires_at=token_expiry(tokens.refresh_token),
        )

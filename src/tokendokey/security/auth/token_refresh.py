"""Token refresh for OAuth refresh_token grant.

When the cached access token expires, use the refresh token to obtain new
tokens without user interaction.

Flow:
1. Access token expires
2. Call refresh_tokens() with the cached refresh token
3. Get new access_token (and possibly a rotated refresh_token)
4. Caller stores the new pair, replacing both files
"""

from __future__ import annotations

__all__ = [
    "TokenRefreshError",
    "TokenRefreshExpiredError",
    "refresh_tokens",
]

from typing import TYPE_CHECKING

import httpx

from tokendokey.constants import OAUTH_CLIENT_TIMEOUT_SECONDS
from tokendokey.exceptions import ConfigMalformedError, IssuerError, NetworkFailureError
from tokendokey.security.auth.token_parser import read_token_response
from tokendokey.security.auth.token_storage import TokenPair

if TYPE_CHECKING:
    from tokendokey.config import ClientConfig

# OAuth error codes meaning the refresh token itself is no longer usable
_EXPIRED_REFRESH_ERRORS = ("invalid_grant", "expired_token")


class TokenRefreshError(IssuerError):
    """Token refresh failed."""

    pass


class TokenRefreshExpiredError(TokenRefreshError):
    """Refresh token was rejected by the issuer - user must log in again."""

    pass


def refresh_tokens(
    config: "ClientConfig",
    refresh_token: str,
    http_client: httpx.Client | None = None,
) -> TokenPair:
    """Exchange a refresh token for a new token pair.

    Sends grant_type=refresh_token, refresh_token, client_id and (for
    confidential clients) client_secret as form data to the token endpoint.
    Success requires HTTP 200 and a non-empty access_token.

    Args:
        config: Client configuration.
        refresh_token: Cached refresh token.
        http_client: Optional httpx client (for testing).

    Returns:
        New TokenPair. Its refresh_token may be empty if the issuer does
        not return one; the stored refresh token is replaced either way.

    Raises:
        TokenRefreshExpiredError: If the issuer reports invalid_grant/expired_token.
        TokenRefreshError: For any other non-success response.
        NetworkFailureError: If the token endpoint cannot be reached.
        ConfigMalformedError: If token_issue_url is not a usable URL.
    """
    client = http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
    owns_client = http_client is None

    try:
        try:
            response = client.post(
                config.token_issue_url,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": refresh_token,
                    **config.client_auth_params(),
                },
            )
        except httpx.HTTPError as e:
            raise NetworkFailureError(f"HTTP error during token refresh: {e}") from e
        except httpx.InvalidURL as e:
            raise ConfigMalformedError(f"Invalid token endpoint URL in client config: {e}") from e

        try:
            return read_token_response(response, error_cls=TokenRefreshError, action="Token refresh")
        except TokenRefreshError as e:
            if e.error in _EXPIRED_REFRESH_ERRORS:
                raise TokenRefreshExpiredError(
                    "Refresh token was rejected by the issuer. "
                    "Run 'tokendokey login' to re-authenticate.",
                    status_code=e.status_code,
                    error=e.error,
                    error_description=e.error_description,
                    body=e.body,
                ) from e
            raise

    finally:
        if owns_client:
            client.close()

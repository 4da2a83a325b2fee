"""mTLS Direct Grant: obtain tokens with a client certificate.

The client proves its identity with the TLS client certificate, so the
form carries only grant_type=password and the client credentials.
Used by `tokendokey mtls-token` when neither cached token is usable.
"""

from __future__ import annotations

__all__ = [
    "DirectGrantError",
    "request_direct_grant_tokens",
]

from typing import TYPE_CHECKING

import httpx

from tokendokey.constants import OAUTH_CLIENT_TIMEOUT_SECONDS
from tokendokey.exceptions import ConfigMalformedError, IssuerError, NetworkFailureError
from tokendokey.security.auth.token_parser import read_token_response
from tokendokey.security.auth.token_storage import TokenPair
from tokendokey.security.mtls import create_mtls_ssl_context

if TYPE_CHECKING:
    from tokendokey.config import ClientConfig, MTLSIdentity


class DirectGrantError(IssuerError):
    """Direct grant rejected by the issuer."""

    pass


def request_direct_grant_tokens(
    config: "ClientConfig",
    identity: "MTLSIdentity",
    http_client: httpx.Client | None = None,
) -> TokenPair:
    """Request a new token pair over mutual TLS.

    The SSL context is always built (so certificate problems surface even
    when an http_client is injected for testing).

    Args:
        config: Client configuration.
        identity: Client certificate material.
        http_client: Optional httpx client (for testing).

    Returns:
        TokenPair with a non-empty access token.

    Raises:
        TLSIdentityError: If the certificate material cannot be used.
        DirectGrantError: If the issuer does not return an access token.
        NetworkFailureError: If the token endpoint cannot be reached.
        ConfigMalformedError: If token_issue_url is not a usable URL.
    """
    ssl_context = create_mtls_ssl_context(identity)
    client = http_client or httpx.Client(verify=ssl_context, timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
    owns_client = http_client is None

    try:
        try:
            response = client.post(
                config.token_issue_url,
                data={"grant_type": "password", **config.client_auth_params()},
            )
        except httpx.HTTPError as e:
            raise NetworkFailureError(f"HTTP error during mTLS direct grant: {e}") from e
        except httpx.InvalidURL as e:
            raise ConfigMalformedError(f"Invalid token endpoint URL in client config: {e}") from e

        return read_token_response(response, error_cls=DirectGrantError, action="mTLS direct grant")

    finally:
        if owns_client:
            client.close()

"""OIDC discovery for `tokendokey init`.

Fetches a provider's `.well-known/openid-configuration` document and
extracts the token and device authorization endpoints.
"""

from __future__ import annotations

__all__ = [
    "DiscoveredEndpoints",
    "DiscoveryError",
    "discover_endpoints",
]

from dataclasses import dataclass

import httpx

from tokendokey.constants import OAUTH_CLIENT_TIMEOUT_SECONDS
from tokendokey.exceptions import ConfigurationError, IssuerError, NetworkFailureError
from tokendokey.security.auth.token_parser import MAX_ERROR_BODY_CHARS, json_body


class DiscoveryError(IssuerError):
    """Discovery document could not be fetched or parsed."""

    pass


@dataclass(frozen=True)
class DiscoveredEndpoints:
    """Endpoints advertised by the provider; either may be missing."""

    token_endpoint: str | None = None
    device_authorization_endpoint: str | None = None


def _endpoint(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def discover_endpoints(url: str, http_client: httpx.Client | None = None) -> DiscoveredEndpoints:
    """Fetch an OIDC discovery document.

    Args:
        url: Full discovery URL (usually ending in /.well-known/openid-configuration).
        http_client: Optional httpx client (for testing).

    Returns:
        DiscoveredEndpoints with whatever endpoints the document lists.

    Raises:
        DiscoveryError: On non-200 status or a body that is not a JSON object.
        NetworkFailureError: If the URL cannot be reached.
        ConfigurationError: If the URL cannot be parsed.
    """
    client = http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS, follow_redirects=True)
    owns_client = http_client is None

    try:
        try:
            response = client.get(url)
        except httpx.HTTPError as e:
            raise NetworkFailureError(f"HTTP error fetching discovery document: {e}") from e
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Invalid discovery URL {url!r}: {e}") from e

        if response.status_code != 200:
            raise DiscoveryError(
                f"Discovery failed (HTTP {response.status_code}) for {url}",
                status_code=response.status_code,
                body=response.text[:MAX_ERROR_BODY_CHARS],
            )

        data = json_body(response)
        if data is None:
            raise DiscoveryError(
                f"Discovery document at {url} is not a JSON object",
                status_code=response.status_code,
                body=response.text[:MAX_ERROR_BODY_CHARS],
            )

        return DiscoveredEndpoints(
            token_endpoint=_endpoint(data.get("token_endpoint")),
            device_authorization_endpoint=_endpoint(data.get("device_authorization_endpoint")),
        )

    finally:
        if owns_client:
            client.close()

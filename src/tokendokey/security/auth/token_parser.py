"""Shared OAuth token endpoint response parsing.

Used by the device flow, the refresh flow and the mTLS direct grant so the
success rule is identical everywhere: HTTP 200 AND a non-empty
access_token. Anything else is an IssuerError carrying the status and body.
"""

from __future__ import annotations

__all__ = [
    "MAX_ERROR_BODY_CHARS",
    "json_body",
    "parse_token_response",
    "read_token_response",
]

from typing import Any

import httpx

from tokendokey.exceptions import IssuerError
from tokendokey.security.auth.token_storage import TokenPair

# Response bodies are truncated in error messages
MAX_ERROR_BODY_CHARS = 500


def json_body(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body.

    Returns:
        The decoded object, or None if the body is not a JSON object.
    """
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def parse_token_response(data: dict[str, Any]) -> TokenPair:
    """Parse an OAuth token response into a TokenPair.

    Handles standard OAuth 2.0 token response fields:
    - access_token (required by callers, see read_token_response)
    - refresh_token (optional; missing means the stored one is cleared)

    Args:
        data: Token response JSON from the issuer.

    Returns:
        TokenPair ready for storage.
    """
    return TokenPair(
        access_token=_as_str(data.get("access_token")),
        refresh_token=_as_str(data.get("refresh_token")),
    )


def read_token_response(
    response: httpx.Response,
    *,
    error_cls: type[IssuerError] = IssuerError,
    action: str = "Token request",
) -> TokenPair:
    """Turn a token endpoint response into a TokenPair or raise.

    Args:
        response: Response from the token endpoint.
        error_cls: IssuerError subclass to raise on failure.
        action: Human-readable name of the request for error messages.

    Returns:
        TokenPair with a non-empty access token.

    Raises:
        IssuerError: (error_cls) on non-200, non-JSON body, or missing access_token.
    """
    data = json_body(response)

    if response.status_code == 200 and data is not None:
        tokens = parse_token_response(data)
        if tokens.access_token:
            return tokens

    error: str | None = None
    error_description: str | None = None
    if data is not None:
        error = _as_str(data.get("error")) or None
        error_description = _as_str(data.get("error_description")) or None
    body = response.text[:MAX_ERROR_BODY_CHARS]

    if response.status_code != 200:
        detail = error_description or error or body or "no response body"
        message = f"{action} failed (HTTP {response.status_code}): {detail}"
    elif data is None:
        message = f"{action} failed: response is not a JSON object"
    else:
        message = f"{action} failed: response has no access_token"
        if error:
            message = f"{message} ({error})"

    raise error_cls(
        message,
        status_code=response.status_code,
        error=error,
        error_description=error_description,
        body=body,
    )

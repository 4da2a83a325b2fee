"""Client configuration models for tokendokey.

A client profile identifies one OAuth client registration. It is created
once by `tokendokey init` and stored as <root>/<client_name>/config.json:

    {
      "client_id": "...",
      "client_secret": "...",
      "token_issue_url": "https://issuer/token",
      "device_authorization_endpoint": "https://issuer/device"
    }

The config is passed explicitly into every flow; there is no process-wide
configuration object.

Example usage:
    config = ClientConfig(client_id="abc", token_issue_url="https://issuer/token")
    store.save_config("acme", config)
"""

from __future__ import annotations

__all__ = [
    "ClientConfig",
    "MTLSIdentity",
]

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientConfig(BaseModel):
    """OAuth client registration for one client profile.

    Immutable after creation; re-run `init` to change it.

    Attributes:
        client_id: OAuth client identifier.
        client_secret: Client secret; empty means a public client.
        token_issue_url: Token endpoint (refresh, device polling, direct grant).
        device_code_url: Device authorization endpoint. Only needed for
            `login`; stored under the JSON key "device_authorization_endpoint".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    client_id: str = Field(min_length=1)
    client_secret: str = ""
    token_issue_url: str = Field(min_length=1)
    device_code_url: str = Field(default="", alias="device_authorization_endpoint")

    @field_validator("token_issue_url", "device_code_url", mode="after")
    @classmethod
    def require_http_url(cls, v: str) -> str:
        """Reject endpoints httpx cannot send to (empty device URL is allowed)."""
        if not v:
            return v
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid URL {v!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"Invalid URL {v!r}: expected an absolute http(s) URL")
        return v

    @property
    def is_public_client(self) -> bool:
        """True when no client secret is configured."""
        return not self.client_secret

    def client_auth_params(self) -> dict[str, str]:
        """Form parameters identifying the client at the token endpoint."""
        params = {"client_id": self.client_id}
        if self.client_secret:
            params["client_secret"] = self.client_secret
        return params

    def to_json(self) -> str:
        """Serialize with on-disk key names."""
        return self.model_dump_json(by_alias=True, indent=2)


class MTLSIdentity(BaseModel):
    """Client certificate material for the mTLS direct grant.

    Attributes:
        client_cert_path: Path to client certificate (PEM format).
        client_key_path: Path to client private key (PEM format).
        ca_cert_path: Path to CA bundle for server verification (PEM format).
            When None, server certificate verification is disabled.
    """

    model_config = ConfigDict(frozen=True)

    client_cert_path: str = Field(min_length=1)
    client_key_path: str = Field(min_length=1)
    ca_cert_path: str | None = None

    @property
    def verifies_server(self) -> bool:
        """True when a CA bundle is configured for server verification."""
        return bool(self.ca_cert_path)

"""Shared fixtures for tokendokey tests.

- Every test gets its own credential root and log directory via
  TOKENDOKEY_HOME / TOKENDOKEY_LOG_DIR, so nothing touches ~/.tokendokey.
- make_jwt mints unsigned-trust test tokens with a chosen exp claim.
- mock_http builds a MagicMock(spec=httpx.Client) answering with real
  httpx.Response objects.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock

import httpx
import jwt
import pytest

from tokendokey.config import ClientConfig
from tokendokey.security.credential_storage import CredentialStore

# Signature is never verified; the key only has to satisfy PyJWT
TEST_SIGNING_KEY = "tokendokey-test-signing-key-0123456789abcdef"


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the credential root and log dir at tmp_path."""
    home = tmp_path / "home"
    monkeypatch.setenv("TOKENDOKEY_HOME", str(home))
    monkeypatch.setenv("TOKENDOKEY_LOG_DIR", str(tmp_path / "logs"))
    return home


@pytest.fixture
def make_jwt() -> Callable[..., str]:
    """Factory for JWTs expiring `expires_in` seconds from now (or at `exp`)."""

    def _make(expires_in: float | None = 3600, exp: Any = None, **claims: Any) -> str:
        payload: dict[str, Any] = {"sub": "test-user", **claims}
        if exp is not None:
            payload["exp"] = exp
        elif expires_in is not None:
            payload["exp"] = int(time.time() + expires_in)
        return jwt.encode(payload, TEST_SIGNING_KEY, algorithm="HS256")

    return _make


@pytest.fixture
def store(isolated_dirs: Path) -> CredentialStore:
    """Credential store rooted in the isolated home."""
    return CredentialStore(isolated_dirs)


@pytest.fixture
def client_config() -> ClientConfig:
    """Confidential client with both endpoints."""
    return ClientConfig(
        client_id="abc",
        client_secret="s3cret-value",
        token_issue_url="https://issuer/token",
        device_code_url="https://issuer/device",
    )


@pytest.fixture
def public_client_config() -> ClientConfig:
    """Public client (no secret)."""
    return ClientConfig(
        client_id="abc",
        token_issue_url="https://issuer/token",
        device_code_url="https://issuer/device",
    )


@pytest.fixture
def mock_http() -> Callable[..., MagicMock]:
    """Factory for a mock httpx.Client whose post() returns the given responses in order."""

    def _make(*responses: httpx.Response | Exception) -> MagicMock:
        client = MagicMock(spec=httpx.Client)
        client.post.side_effect = list(responses)
        return client

    return _make

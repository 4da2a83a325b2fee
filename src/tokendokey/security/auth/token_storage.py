"""Token pair model and the narrow token storage interface.

Flows and the token service only depend on TokenStorage, so persistence can
gain advisory locking or another backend without changing flow logic. The
file-backed implementation is CredentialStore in
tokendokey.security.credential_storage.
"""

from __future__ import annotations

__all__ = [
    "TokenPair",
    "TokenStorage",
]

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict


class TokenPair(BaseModel):
    """Access/refresh token pair as cached on disk.

    Both members are opaque bearer strings and may be empty. Validity is not
    stored; it is derived from the JWT exp claim when the pair is read.
    A successful exchange always replaces both members together.

    Attributes:
        access_token: Bearer token for API calls.
        refresh_token: Token for obtaining new access tokens ("" if none).
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = ""
    refresh_token: str = ""

    @classmethod
    def empty(cls) -> "TokenPair":
        """Pair written at init and logout (initialized, no tokens)."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """True if neither token is present."""
        return not self.access_token and not self.refresh_token

    def __repr__(self) -> str:
        # Never echo bearer tokens into tracebacks or logs
        return (
            f"TokenPair(access_token={'<set>' if self.access_token else '<empty>'}, "
            f"refresh_token={'<set>' if self.refresh_token else '<empty>'})"
        )

    __str__ = __repr__


class TokenStorage(ABC):
    """Abstract base class for per-client token persistence."""

    @abstractmethod
    def load_tokens(self, client_name: str) -> TokenPair:
        """Load the cached pair for a client.

        Missing token files read as empty strings, not errors.

        Raises:
            TokenUnreadableError: If a token file exists but cannot be read.
        """

    @abstractmethod
    def save_tokens(self, client_name: str, tokens: TokenPair) -> None:
        """Replace both cached tokens for a client.

        Raises:
            TokenUnreadableError: If the token files cannot be written.
        """

    @abstractmethod
    def clear_tokens(self, client_name: str) -> None:
        """Reset the client to the initialized-no-tokens state."""

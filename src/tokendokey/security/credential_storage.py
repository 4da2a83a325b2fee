"""File-backed credential storage for client profiles.

Each client lives in its own directory under the credential root:

    <root>/<client_name>/config.json
    <root>/<client_name>/access_token.txt
    <root>/<client_name>/refresh_token.txt

Directories are owner-only (0700) and files owner-only (0600). Token files
hold the raw bearer strings and may be empty: empty files mean the client
is initialized but not logged in. Each file is replaced atomically, but the
two token files are written one after the other, not as a unit.
"""

from __future__ import annotations

__all__ = [
    "CredentialStore",
]

import shutil
from pathlib import Path

from tokendokey.config import ClientConfig
from tokendokey.constants import ACCESS_TOKEN_FILENAME, CONFIG_FILENAME, REFRESH_TOKEN_FILENAME
from tokendokey.exceptions import (
    ConfigMalformedError,
    ConfigNotFoundError,
    InvalidClientNameError,
    TokenUnreadableError,
)
from tokendokey.security.auth.token_storage import TokenPair, TokenStorage
from tokendokey.utils.file_helpers import (
    get_root_dir,
    load_validated_json,
    set_secure_permissions,
    write_file_atomic,
)


class CredentialStore(TokenStorage):
    """Per-client config and token persistence on the local filesystem.

    Usage:
        store = CredentialStore()
        store.initialize("acme", ClientConfig(client_id="abc", token_issue_url="https://issuer/token"))
        tokens = store.load_tokens("acme")
    """

    def __init__(self, root: Path | None = None) -> None:
        """Initialize store.

        Args:
            root: Credential root directory. Defaults to $TOKENDOKEY_HOME
                or ~/.tokendokey.
        """
        self._root = Path(root) if root is not None else get_root_dir()

    @property
    def root(self) -> Path:
        return self._root

    def client_dir(self, client_name: str) -> Path:
        """Directory for a client profile.

        Raises:
            InvalidClientNameError: If the name is not a single plain path component.
        """
        if (
            not client_name
            or client_name in (".", "..")
            or "/" in client_name
            or "\\" in client_name
            or Path(client_name).name != client_name
        ):
            raise InvalidClientNameError(f"Invalid client name: {client_name!r}")
        return self._root / client_name

    def _ensure_client_dir(self, client_name: str) -> Path:
        path = self.client_dir(client_name)
        path.mkdir(parents=True, exist_ok=True)
        set_secure_permissions(path, is_directory=True)
        return path

    # -------------------------------------------------------------------------
    # Config
    # -------------------------------------------------------------------------

    def config_path(self, client_name: str) -> Path:
        return self.client_dir(client_name) / CONFIG_FILENAME

    def load_config(self, client_name: str) -> ClientConfig:
        """Load and validate a client's config.json.

        Raises:
            ConfigNotFoundError: If the client was never initialized.
            ConfigMalformedError: If the file is not valid JSON or fails validation.
        """
        path = self.config_path(client_name)
        if not path.is_file():
            raise ConfigNotFoundError(
                f"Client '{client_name}' is not initialized (no {path}). "
                f"Run 'tokendokey init -c {client_name}' first."
            )
        try:
            return load_validated_json(
                path,
                ClientConfig,
                file_type="config",
                recovery_hint=f"Re-run 'tokendokey init -c {client_name}' to recreate it.",
            )
        except ValueError as e:
            raise ConfigMalformedError(str(e)) from e

    def save_config(self, client_name: str, config: ClientConfig) -> Path:
        """Write config.json, creating the client directory if needed.

        Returns:
            Path to the written config file.
        """
        self._ensure_client_dir(client_name)
        path = self.config_path(client_name)
        write_file_atomic(path, config.to_json() + "\n")
        return path

    def initialize(self, client_name: str, config: ClientConfig) -> Path:
        """Create a client profile: config plus empty token files."""
        path = self.save_config(client_name, config)
        self.clear_tokens(client_name)
        return path

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def _read_token(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError) as e:
            raise TokenUnreadableError(f"Cannot read token file {path}: {e}") from e

    def load_tokens(self, client_name: str) -> TokenPair:
        client_dir = self.client_dir(client_name)
        return TokenPair(
            access_token=self._read_token(client_dir / ACCESS_TOKEN_FILENAME),
            refresh_token=self._read_token(client_dir / REFRESH_TOKEN_FILENAME),
        )

    def save_tokens(self, client_name: str, tokens: TokenPair) -> None:
        client_dir = self._ensure_client_dir(client_name)
        try:
            write_file_atomic(client_dir / ACCESS_TOKEN_FILENAME, tokens.access_token)
            write_file_atomic(client_dir / REFRESH_TOKEN_FILENAME, tokens.refresh_token)
        except OSError as e:
            raise TokenUnreadableError(f"Cannot write token files in {client_dir}: {e}") from e

    def clear_tokens(self, client_name: str) -> None:
        self.save_tokens(client_name, TokenPair.empty())

    # -------------------------------------------------------------------------
    # Client profiles
    # -------------------------------------------------------------------------

    def exists(self, client_name: str) -> bool:
        """True if the client has a config file."""
        return self.config_path(client_name).is_file()

    def list_clients(self) -> list[str]:
        """Names of all client directories, sorted."""
        if not self._root.is_dir():
            return []
        return sorted(p.name for p in self._root.iterdir() if p.is_dir() and not p.name.startswith("."))

    def delete_client(self, client_name: str) -> None:
        """Remove a client directory and everything in it.

        Raises:
            ConfigNotFoundError: If the client directory does not exist.
        """
        path = self.client_dir(client_name)
        if not path.is_dir():
            raise ConfigNotFoundError(f"Client '{client_name}' does not exist")
        shutil.rmtree(path)

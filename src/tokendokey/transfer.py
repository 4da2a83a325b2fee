"""Move a client profile between machines as a zip archive.

`tokendokey export` writes the client's files into `tokendokey.key`;
`tokendokey import` recreates the client directory from it. Entries are
stored and restored by base name only, so an archive can never write
outside the client directory.

The archive contains the client secret and cached tokens in plaintext.
"""

from __future__ import annotations

__all__ = [
    "TransferError",
    "export_client",
    "import_client",
]

import zipfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING

from tokendokey.constants import ACCESS_TOKEN_FILENAME, ARCHIVE_FILENAME, REFRESH_TOKEN_FILENAME
from tokendokey.exceptions import ConfigNotFoundError, TokenDokeyError
from tokendokey.utils.file_helpers import set_secure_permissions, write_file_atomic

if TYPE_CHECKING:
    from tokendokey.security.credential_storage import CredentialStore


class TransferError(TokenDokeyError):
    """Archive could not be written, read or applied."""

    exit_code = 8
    failure_type = "transfer_error"


def _entry_basename(name: str) -> str:
    # Archives may come from any platform: strip both separator styles
    return PureWindowsPath(PurePosixPath(name).name).name


def export_client(store: "CredentialStore", client_name: str, dest_dir: Path) -> Path:
    """Write a client's files to <dest_dir>/tokendokey.key.

    Args:
        store: Credential store holding the client.
        client_name: Client profile to export.
        dest_dir: Directory receiving the archive.

    Returns:
        Path to the written archive.

    Raises:
        ConfigNotFoundError: If the client directory does not exist.
        TransferError: If the archive cannot be written.
    """
    client_dir = store.client_dir(client_name)
    if not client_dir.is_dir():
        raise ConfigNotFoundError(f"Client '{client_name}' does not exist")

    archive_path = Path(dest_dir) / ARCHIVE_FILENAME
    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in sorted(client_dir.iterdir()):
                if path.is_file():
                    zf.write(path, arcname=path.name)
    except OSError as e:
        raise TransferError(f"Cannot write archive {archive_path}: {e}") from e

    set_secure_permissions(archive_path)
    return archive_path


def import_client(store: "CredentialStore", client_name: str, archive_path: Path) -> list[str]:
    """Recreate a client directory from an archive.

    Every entry is read before any file is written, and entries are copied
    as raw bytes. Existing files with the same names are overwritten; other
    files in the client directory are left alone. Token files missing from
    the archive are created empty.

    Args:
        store: Credential store receiving the client.
        client_name: Client profile to create or overwrite.
        archive_path: Path to a tokendokey.key archive.

    Returns:
        Base names of the files written, in archive order.

    Raises:
        TransferError: If the archive is missing, not a zip file or unreadable.
    """
    archive_path = Path(archive_path)
    if not archive_path.is_file():
        raise TransferError(f"Archive not found: {archive_path}")

    client_dir = store.client_dir(client_name)
    entries = _read_entries(archive_path)

    try:
        client_dir.mkdir(parents=True, exist_ok=True)
        set_secure_permissions(client_dir, is_directory=True)
        for name, content in entries.items():
            write_file_atomic(client_dir / name, content)
        # Archives without token files still leave an initialized client
        for token_file in (ACCESS_TOKEN_FILENAME, REFRESH_TOKEN_FILENAME):
            if not (client_dir / token_file).exists():
                write_file_atomic(client_dir / token_file, b"")
    except OSError as e:
        raise TransferError(f"Cannot import archive {archive_path}: {e}") from e

    return list(entries)


def _read_entries(archive_path: Path) -> dict[str, bytes]:
    """Read every file entry into memory, keyed by base name, before anything is written."""
    entries: dict[str, bytes] = {}
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                name = _entry_basename(info.filename)
                if not name or name in (".", ".."):
                    continue
                entries[name] = zf.read(info)
    except zipfile.BadZipFile as e:
        raise TransferError(f"Not a valid archive: {archive_path}") from e
    except (OSError, NotImplementedError, RuntimeError) as e:
        # RuntimeError: encrypted entry; NotImplementedError: unsupported compression
        raise TransferError(f"Cannot read archive {archive_path}: {e}") from e
    return entries

"""Shared file utilities for tokendokey.

Provides common utilities used by config, credential storage and logging:
- get_root_dir: credential root (~/.tokendokey or $TOKENDOKEY_HOME)
- get_log_dir: OS-appropriate log directory
- set_secure_permissions: Owner-only file/directory permissions
- write_file_atomic: Write a file via temp file + rename
- load_validated_json: JSON file -> Pydantic model with readable errors
- format_validation_errors: One line per failed field of a ValidationError
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import TypeVar

from platformdirs import user_log_dir
from pydantic import BaseModel, ValidationError

from tokendokey.constants import APP_NAME, DEFAULT_ROOT_DIRNAME, HOME_ENV_VAR, LOG_DIR_ENV_VAR

# Type variable for Pydantic models
T = TypeVar("T", bound=BaseModel)

__all__ = [
    "format_validation_errors",
    "get_log_dir",
    "get_root_dir",
    "load_validated_json",
    "set_secure_permissions",
    "write_file_atomic",
]


# -----------------------------------------------------------------------------
# Directories
# -----------------------------------------------------------------------------


def get_root_dir() -> Path:
    """Get the credential root directory.

    Resolution order:
    1. $TOKENDOKEY_HOME
    2. ~/.tokendokey

    Returns:
        Path to the directory holding one sub-directory per client.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_ROOT_DIRNAME


def get_log_dir() -> Path:
    """Get the log directory.

    Uses $TOKENDOKEY_LOG_DIR when set, otherwise platformdirs:
    - macOS: ~/Library/Logs/tokendokey
    - Linux: ~/.local/state/tokendokey/log
    - Windows: %LOCALAPPDATA%\\tokendokey\\Logs

    Returns:
        Path to the log directory (may not exist yet).
    """
    override = os.environ.get(LOG_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(user_log_dir(APP_NAME))


# -----------------------------------------------------------------------------
# File operations
# -----------------------------------------------------------------------------


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Set secure permissions on file or directory.

    Sets permissions to restrict access to owner only:
    - Directory: 0o700 (rwx------)
    - File: 0o600 (rw-------)

    Does nothing on Windows. Silently ignores permission errors
    (some systems don't allow permission changes).

    Args:
        path: Path to file or directory.
        is_directory: If True, use directory permissions (0o700).
    """
    if sys.platform == "win32":
        return

    try:
        mode = 0o700 if is_directory else 0o600
        path.chmod(mode)
    except OSError:
        pass  # Permission changes might fail on some systems


def write_file_atomic(path: Path, content: str | bytes) -> None:
    """Write a file so readers never observe a partial write.

    Writes to a temporary file in the same directory, then renames it over
    the target. The result has owner-only permissions.

    Args:
        path: Destination file (parent directory must exist).
        content: Text (written as UTF-8) or raw bytes.

    Raises:
        OSError: If the write or rename fails.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        set_secure_permissions(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def load_validated_json(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
    recovery_hint: str | None = None,
) -> T:
    """Load JSON file and validate against Pydantic model.

    Combines file reading, JSON parsing, and Pydantic validation with
    consistent error messages.

    Args:
        file_path: Path to JSON file.
        model_class: Pydantic model class to validate against.
        file_type: Description for error messages (e.g., "config").
        recovery_hint: Optional hint appended to validation errors.

    Returns:
        Validated Pydantic model instance.

    Raises:
        ValueError: If JSON is invalid or validation fails.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        hint = f"\n\n{recovery_hint}" if recovery_hint else ""
        raise ValueError(f"Invalid {file_type} in {file_path}:\n" + format_validation_errors(e) + hint) from e


def format_validation_errors(error: ValidationError) -> str:
    """Render a ValidationError as indented "  - field: message" lines."""
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"]) or "<root>"
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)

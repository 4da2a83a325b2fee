"""Logging utilities for JSONL output.

Provides:
- ISO8601Formatter: JSONL records with ISO 8601 UTC timestamps
- setup_jsonl_logger: file logger writing JSONL
- token_fingerprint: short SHA-256 reference to a token for log correlation
- serialize_event: Pydantic event -> dict ready for logging
"""

from __future__ import annotations

__all__ = [
    "ISO8601Formatter",
    "serialize_event",
    "setup_jsonl_logger",
    "token_fingerprint",
]

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from tokendokey.constants import TOKEN_FINGERPRINT_LENGTH
from tokendokey.utils.file_helpers import set_secure_permissions


class ISO8601Formatter(logging.Formatter):
    """Custom formatter with ISO 8601 timestamps (UTC) for JSONL output.

    Format: YYYY-MM-DDTHH:MM:SS.sssZ
    Example: 2025-12-04T10:48:37.123Z
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSONL with ISO 8601 timestamp.

        Args:
            record: The log record to format

        Returns:
            str: JSON-formatted log entry with timestamp
        """
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        # Handle dict messages (structured logging)
        if isinstance(record.msg, dict):
            log_data = record.msg
        else:
            log_data = {"message": record.getMessage()}

        log_entry = {"time": timestamp, "level": record.levelname, **log_data}
        return json.dumps(log_entry, default=str)


def setup_jsonl_logger(
    logger_name: str,
    log_file: Path,
    log_level: int = logging.INFO,
) -> logging.Logger:
    """Set up a logger that writes JSONL with ISO 8601 timestamps.

    Creates the log directory if needed with owner-only permissions (700).

    Args:
        logger_name: Name for the logger (e.g., "tokendokey.audit.auth")
        log_file: Path to the log file
        log_level: Logging level (default: INFO)

    Returns:
        logging.Logger: Configured logger instance

    Raises:
        OSError: If the log directory cannot be created
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    set_secure_permissions(log_file.parent, is_directory=True)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    logger.propagate = False  # Don't propagate to root logger

    # Close and remove any existing handlers to avoid duplicates and resource leaks
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    return logger


def token_fingerprint(token: str, prefix_length: int = TOKEN_FINGERPRINT_LENGTH) -> str | None:
    """Reference a bearer token in logs without revealing it.

    Args:
        token: The token string.
        prefix_length: Number of hex characters to keep.

    Returns:
        "sha256:<prefix>", or None for an empty token.

    Example:
        >>> token_fingerprint("eyJhbGciOi...")
        'sha256:3f1c9a0b7d2e'
    """
    if not token:
        return None
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
    return f"sha256:{digest[:prefix_length]}"


def serialize_event(event: BaseModel) -> dict[str, Any]:
    """Serialize a Pydantic event model for logging.

    Excludes the 'time' field (added by ISO8601Formatter) and None values.
    """
    return event.model_dump(mode="json", exclude={"time"}, exclude_none=True)

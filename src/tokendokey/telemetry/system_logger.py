"""System logger for operational events.

Singleton logger for operational messages that are not part of the auth
audit trail (issuer errors, disabled TLS verification, expiring client
certificates, poll retries).

Logging strategy:
- Console (stderr): WARNING and above by default; `--verbose` lowers it to INFO.
  stdout stays reserved for the token itself.
- File (system.jsonl): WARNING, ERROR, CRITICAL once configure_system_logger_file()
  is called.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "StderrHandler",
    "configure_system_logger_file",
    "get_system_logger",
    "set_console_level",
]

import logging
import sys
from pathlib import Path

from tokendokey.constants import APP_NAME
from tokendokey.utils.file_helpers import set_secure_permissions
from tokendokey.utils.logging_helpers import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts 'message' or 'event' field from dict messages for cleaner stderr output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human-readable console output.

        Args:
            record: The log record to format.

        Returns:
            str: Formatted log message with level prefix.
        """
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        return f"{record.levelname}: {record.getMessage()}"


class StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Writes to whatever sys.stderr is when a record is emitted."""

    @property
    def stream(self):  # type: ignore[no-untyped-def]
        return sys.stderr

    @stream.setter
    def stream(self, value: object) -> None:
        pass


# Module-level singleton logger - created on first use
_system_logger: logging.Logger | None = None
_stderr_handler: logging.Handler | None = None
_file_handler_configured: bool = False


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Creates the logger on first call with a stderr handler only.
    File handler is added later via configure_system_logger_file().

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "tls_verification_disabled", "message": "..."})
    """
    global _system_logger, _stderr_handler

    if _system_logger is not None:
        return _system_logger

    # Logger accepts DEBUG; handlers decide what is emitted where
    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.DEBUG)
    _system_logger.propagate = False  # Don't propagate to root logger

    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    _stderr_handler = StderrHandler()
    _stderr_handler.setLevel(logging.WARNING)
    _stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(_stderr_handler)

    return _system_logger


def set_console_level(level: int) -> None:
    """Change the stderr threshold (e.g., logging.INFO for --verbose).

    Args:
        level: Logging level for console output.
    """
    get_system_logger()
    if _stderr_handler is not None:
        _stderr_handler.setLevel(level)


def configure_system_logger_file(log_path: Path) -> None:
    """Add a JSONL file handler (WARNING and above) to the system logger.

    Only configures once per process. Failure to create the log directory
    leaves console logging in place.

    Args:
        log_path: Path to system.jsonl.
    """
    global _file_handler_configured

    if _file_handler_configured:
        return

    logger = get_system_logger()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        set_secure_permissions(log_path.parent, is_directory=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.debug(
            {
                "event": "system_log_file_unavailable",
                "message": f"Cannot write system log at {log_path}: {e}",
            }
        )
        return

    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_configured = True

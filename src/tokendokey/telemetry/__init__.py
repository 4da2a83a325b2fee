"""Logging for tokendokey.

- system_logger: operational messages (stderr, optional JSONL file)
- auth_logger: token lifecycle audit trail (auth.jsonl)
"""

from tokendokey.telemetry.auth_logger import AuthLogger, create_auth_logger
from tokendokey.telemetry.system_logger import (
    configure_system_logger_file,
    get_system_logger,
    set_console_level,
)

__all__ = [
    "AuthLogger",
    "configure_system_logger_file",
    "create_auth_logger",
    "get_system_logger",
    "set_console_level",
]

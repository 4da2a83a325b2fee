"""Shared CLI helpers.

Provides the per-invocation state object, store/service construction and
the error boundary every command runs inside.
"""

from __future__ import annotations

__all__ = [
    "CLIState",
    "client_option",
    "exit_on_error",
    "get_service",
    "get_store",
    "mask_secret",
    "require_flag",
]

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

import click

from tokendokey.constants import AUTH_LOG_FILENAME
from tokendokey.exceptions import TokenDokeyError
from tokendokey.security.credential_storage import CredentialStore
from tokendokey.telemetry import AuthLogger, create_auth_logger, get_system_logger
from tokendokey.token_service import TokenService
from tokendokey.utils.file_helpers import get_log_dir

from .styling import style_error

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class CLIState:
    """Options of the root command, shared with subcommands via ctx.obj.

    Attributes:
        home: Credential root from --home / $TOKENDOKEY_HOME, or None for
            the default ~/.tokendokey.
    """

    home: Path | None = None


def client_option(required: bool = True) -> Callable[[F], F]:
    """The -c/--client option shared by all client commands."""
    return click.option(
        "-c",
        "--client",
        "client_name",
        required=required,
        help="Client profile name",
    )


def get_store(ctx: click.Context) -> CredentialStore:
    state = ctx.find_object(CLIState)
    return CredentialStore(state.home if state is not None else None)


def _auth_logger() -> AuthLogger:
    log_path = get_log_dir() / AUTH_LOG_FILENAME
    try:
        return create_auth_logger(log_path)
    except OSError as e:
        get_system_logger().debug(
            {
                "event": "auth_log_unavailable",
                "message": f"Cannot write auth log at {log_path}: {e}",
            }
        )
        return AuthLogger.disabled()


def get_service(ctx: click.Context) -> TokenService:
    """Build a TokenService for this invocation."""
    return TokenService(get_store(ctx), auth_logger=_auth_logger())


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Print TokenDokeyError on stderr and exit with its exit code."""
    try:
        yield
    except TokenDokeyError as e:
        get_system_logger().info(
            {
                "event": "command_failed",
                "message": str(e),
                "error_type": type(e).__name__,
                "failure_type": e.failure_type,
            }
        )
        click.echo(style_error(str(e)), err=True)
        sys.exit(e.exit_code)


def require_flag(value: str | None, flag_name: str, message: str | None = None) -> str:
    """Validate a required CLI flag, exit with error if missing.

    Args:
        value: The flag value to validate.
        flag_name: Name of the flag (without --) for error message.
        message: Optional custom error message (overrides default).

    Returns:
        The validated non-empty value.

    Raises:
        SystemExit: If value is None or empty.
    """
    if not value:
        msg = message or f"--{flag_name} is required"
        click.echo(style_error(f"Error: {msg}"), err=True)
        sys.exit(1)
    return value


def mask_secret(value: str) -> str:
    """Mask a secret for display, keeping the first and last character.

    Values of four characters or fewer are masked entirely.

    Example:
        >>> mask_secret("supersecret")
        's*********t'
    """
    if len(value) <= 4:
        return "*" * len(value)
    return value[0] + "*" * (len(value) - 2) + value[-1]

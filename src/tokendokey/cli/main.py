"""Main CLI entry point for tokendokey.

Defines the CLI group and registers all subcommands.

Commands:
    init        - Create a client profile (config + empty token files)
    get-token   - Print a valid access token (cache, then refresh)
    login       - Device authorization login (PKCE)
    logout      - Clear cached tokens
    mtls-token  - Print a valid access token, using mTLS direct grant if needed
    status      - Show validity of cached tokens
    list        - List clients or show one client's config
    delete      - Remove a client profile
    export      - Write a client profile to tokendokey.key
    import      - Restore a client profile from tokendokey.key

Subcommand help:
    tokendokey COMMAND -h       Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import logging
import sys
from pathlib import Path

import click

from tokendokey import __version__
from tokendokey.constants import HOME_ENV_VAR, SYSTEM_LOG_FILENAME
from tokendokey.telemetry import configure_system_logger_file, set_console_level
from tokendokey.utils.file_helpers import get_log_dir

from .commands.auth import login, logout, status
from .commands.clients import delete, list_clients
from .commands.init import init
from .commands.token import get_token, mtls_token
from .commands.transfer import export, import_
from .helpers import CLIState


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        # Registration order follows a typical workflow
        return list(self.commands)

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start (Interactive):
  tokendokey init -c myclient             Create a client profile
  tokendokey login -c myclient            Log in through the browser
  tokendokey get-token -c myclient        Print a valid access token

Non-Interactive Setup:
  tokendokey init -c myclient --non-interactive \\
    --client-id my-client-id \\
    --discovery-url https://auth.example.com/.well-known/openid-configuration

Machine Identity (mTLS):
  tokendokey mtls-token -c myclient \\
    --cert client.crt --key client.key --caCert ca.crt

Credentials are stored in ~/.tokendokey/<client> (override with --home
or $TOKENDOKEY_HOME).
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option("--verbose", is_flag=True, help="Show informational log messages on stderr")
@click.option(
    "--home",
    envvar=HOME_ENV_VAR,
    type=click.Path(file_okay=False, path_type=Path),
    help="Credential root directory (default: ~/.tokendokey)",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: bool, home: Path | None) -> None:
    """tokendokey: OAuth access tokens for command-line clients."""
    if version:
        click.echo(f"tokendokey {__version__}")
        sys.exit(0)

    ctx.obj = CLIState(home=home)

    set_console_level(logging.INFO if verbose else logging.WARNING)
    configure_system_logger_file(get_log_dir() / SYSTEM_LOG_FILENAME)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(init)
cli.add_command(get_token)
cli.add_command(login)
cli.add_command(logout)
cli.add_command(mtls_token)
cli.add_command(status)
cli.add_command(list_clients)
cli.add_command(delete)
cli.add_command(export)
cli.add_command(import_)


def main() -> None:
    """CLI entry point."""
    cli()

"""Authentication commands for tokendokey CLI.

Commands:
    login   - Authenticate via browser (Device Flow with PKCE)
    logout  - Clear cached tokens
    status  - Show validity of cached tokens
"""

from __future__ import annotations

__all__ = ["login", "logout", "status"]

import json as json_module
import webbrowser
from datetime import datetime

import click

from tokendokey.security.auth.device_flow import (
    DeviceCodeResponse,
    DeviceFlowDeniedError,
    DeviceFlowExpiredError,
    PollOnceResult,
)

from ..helpers import client_option, exit_on_error, get_service
from ..prompts import wait_for_enter
from ..styling import style_dim, style_header, style_label, style_success


@click.command()
@client_option()
@click.option(
    "-o",
    "--offline-token",
    "offline",
    is_flag=True,
    help="Request an offline token instead of a regular refresh token",
)
@click.option(
    "--no-browser",
    is_flag=True,
    help="Don't automatically open browser",
)
@click.pass_context
def login(ctx: click.Context, client_name: str, offline: bool, no_browser: bool) -> None:
    """Authenticate via browser using Device Flow.

    Shows a verification URL (and code), waits until you press Enter after
    finishing in the browser, then polls until the issuer hands out tokens.
    """

    def display_callback(device_code: DeviceCodeResponse) -> None:
        """Display authentication instructions to user."""
        auth_url = device_code.verification_uri_complete or device_code.verification_uri

        click.echo(style_header("Device Login"))
        click.echo()
        if device_code.verification_uri_complete:
            click.echo("  Open this URL in your browser:")
            click.echo(f"  {click.style(auth_url, fg='blue', underline=True)}")
        else:
            click.echo("  Please visit the following URL and enter the code:")
            click.echo(f"  {click.style(str(auth_url), fg='blue', underline=True)}")
            click.echo(f"  Your code: {click.style(str(device_code.user_code), fg='green', bold=True)}")
        click.echo()

        if not no_browser and auth_url:
            try:
                if webbrowser.open(auth_url):
                    click.echo("  Browser opened automatically.")
            except webbrowser.Error as e:
                click.echo(f"  (Could not open browser automatically: {e})")

    def wait_for_operator() -> None:
        wait_for_enter("Once finished in the browser, press Enter to continue...")
        click.echo("Waiting for authorization", nl=False)

    def poll_callback(result: PollOnceResult) -> None:
        """Show progress while polling."""
        click.echo(".", nl=False)

    with exit_on_error():
        try:
            tokens = get_service(ctx).login(
                client_name,
                display_callback,
                wait_for_operator,
                offline=offline,
                poll_callback=poll_callback,
            )
        except (DeviceFlowExpiredError, DeviceFlowDeniedError):
            click.echo()
            raise

    click.echo()
    click.echo(style_success(f"Logged in to '{client_name}'"))
    if not tokens.refresh_token:
        click.echo(style_dim("  No refresh token was issued; run 'login' again once the access token expires."))


@click.command()
@client_option()
@click.pass_context
def logout(ctx: click.Context, client_name: str) -> None:
    """Clear the cached access and refresh tokens.

    The client configuration is kept; run 'login' to authenticate again.
    """
    with exit_on_error():
        get_service(ctx).logout(client_name)
    click.echo(style_success(f"Logged out of '{client_name}'"))


def _format_expiry(expires_at: datetime | None, present: bool) -> str:
    if not present:
        return style_dim("none")
    if expires_at is None:
        return style_dim("no expiry claim")
    return expires_at.strftime("%Y-%m-%d %H:%M:%S UTC")


@click.command()
@client_option()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, client_name: str, as_json: bool) -> None:
    """Show whether the cached tokens are still usable (no network)."""
    with exit_on_error():
        token_status = get_service(ctx).status(client_name)

    if as_json:
        click.echo(json_module.dumps(token_status.to_dict(), indent=2))
        return

    click.echo(style_header(f"Client '{client_name}'"))
    click.echo(
        f"{style_label('Access token')} "
        f"{'valid' if token_status.access_token_valid else 'not valid'} "
        f"(expires: {_format_expiry(token_status.access_token_expires_at, token_status.has_access_token)})"
    )
    click.echo(
        f"{style_label('Refresh token')} "
        f"{'valid' if token_status.refresh_token_valid else 'not valid'} "
        f"(expires: {_format_expiry(token_status.refresh_token_expires_at, token_status.has_refresh_token)})"
    )
    if token_status.logged_in:
        click.echo(style_success("Logged in"))
    else:
        click.echo(style_dim(f"Not logged in. Run 'tokendokey login -c {client_name}'."))

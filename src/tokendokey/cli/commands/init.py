"""Init command for tokendokey CLI.

Creates a client profile: config.json plus empty token files. Endpoints
can come from OIDC discovery, from flags, or from manual prompts.
"""

from __future__ import annotations

__all__ = ["init"]

import click
from pydantic import ValidationError

from tokendokey.config import ClientConfig
from tokendokey.exceptions import ConfigMalformedError, TokenDokeyError
from tokendokey.security.auth.discovery import DiscoveredEndpoints, discover_endpoints
from tokendokey.utils.file_helpers import format_validation_errors

from ..helpers import client_option, exit_on_error, get_store, require_flag
from ..prompts import prompt_optional, prompt_secret, prompt_with_retry
from ..styling import style_dim, style_error, style_header, style_success, style_warning


def _discover(discovery_url: str, non_interactive: bool) -> DiscoveredEndpoints:
    """Fetch endpoints; interactive runs fall back to manual entry on failure."""
    click.echo(f"Fetching {discovery_url} ...")
    if non_interactive:
        with exit_on_error():
            return discover_endpoints(discovery_url)

    try:
        endpoints = discover_endpoints(discovery_url)
    except TokenDokeyError as e:
        click.echo(style_error(f"Discovery failed: {e}"))
        click.echo("  Enter the endpoints manually.")
        return DiscoveredEndpoints()

    if endpoints.token_endpoint:
        click.echo(f"  Token endpoint: {endpoints.token_endpoint}")
    if endpoints.device_authorization_endpoint:
        click.echo(f"  Device authorization endpoint: {endpoints.device_authorization_endpoint}")
    return endpoints


@click.command()
@client_option()
@click.option("--client-id", help="OAuth client ID")
@click.option("--client-secret", help="OAuth client secret (omit for a public client)")
@click.option("--discovery-url", help="OIDC discovery URL (.well-known/openid-configuration)")
@click.option("--token-url", help="Token endpoint (overrides discovery)")
@click.option("--device-url", help="Device authorization endpoint (overrides discovery)")
@click.option(
    "--non-interactive",
    is_flag=True,
    help="Fail instead of prompting for missing values",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing client without asking")
@click.pass_context
def init(
    ctx: click.Context,
    client_name: str,
    client_id: str | None,
    client_secret: str | None,
    discovery_url: str | None,
    token_url: str | None,
    device_url: str | None,
    non_interactive: bool,
    force: bool,
) -> None:
    """Create a client profile.

    Prompts for the client ID, secret and an OIDC discovery URL, then
    fetches the token and device authorization endpoints. Endpoints the
    provider does not advertise are asked for manually.

    Existing cached tokens are cleared.
    """
    store = get_store(ctx)

    with exit_on_error():
        exists = store.exists(client_name)

    if exists and not force:
        if non_interactive:
            require_flag(None, "force", f"Client '{client_name}' already exists (use --force to overwrite)")
        click.echo(style_warning(f"Client '{client_name}' already exists"))
        click.confirm("Overwrite it and clear its cached tokens?", default=False, abort=True)

    if not non_interactive:
        click.echo(style_header(f"Client '{client_name}'"))

    if not client_id:
        client_id = (
            require_flag(client_id, "client-id")
            if non_interactive
            else prompt_with_retry("Client ID")
        )

    if client_secret is None:
        client_secret = "" if non_interactive else prompt_secret("Client secret (leave empty for a public client)")

    if not discovery_url and not token_url and not non_interactive:
        discovery_url = prompt_optional("OIDC discovery URL (leave empty to enter endpoints manually)")

    endpoints = _discover(discovery_url, non_interactive) if discovery_url else DiscoveredEndpoints()

    token_url = token_url or endpoints.token_endpoint
    if not token_url:
        token_url = (
            require_flag(token_url, "token-url", "--token-url is required (not found via discovery)")
            if non_interactive
            else prompt_with_retry("Token endpoint URL")
        )

    device_url = device_url or endpoints.device_authorization_endpoint
    if not device_url and not non_interactive:
        device_url = prompt_optional("Device authorization endpoint URL (needed for 'login', optional)")

    with exit_on_error():
        try:
            config = ClientConfig(
                client_id=client_id,
                client_secret=client_secret,
                token_issue_url=token_url,
                device_code_url=device_url or "",
            )
        except ValidationError as e:
            raise ConfigMalformedError("Invalid client configuration:\n" + format_validation_errors(e)) from e
        config_path = store.initialize(client_name, config)

    click.echo(style_success(f"Client '{client_name}' saved to {config_path}"))
    if not config.device_code_url:
        click.echo(style_dim("  No device authorization endpoint: use 'mtls-token' or re-run init before 'login'."))

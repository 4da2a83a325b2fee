"""Token commands for tokendokey CLI.

Commands:
    get-token   - Print a valid access token (cache, then refresh)
    mtls-token  - Same, falling back to the mTLS direct grant

Only the token is written to stdout so the output can be captured,
e.g. `curl -H "Authorization: Bearer $(tokendokey get-token -c acme)"`.
"""

from __future__ import annotations

__all__ = ["get_token", "mtls_token"]

import click
from pydantic import ValidationError

from tokendokey.config import MTLSIdentity
from tokendokey.exceptions import TLSIdentityError
from tokendokey.utils.file_helpers import format_validation_errors

from ..helpers import client_option, exit_on_error, get_service
from ..styling import style_warning


@click.command("get-token")
@client_option()
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Refresh even if the cached access token is still valid",
)
@click.pass_context
def get_token(ctx: click.Context, client_name: str, force: bool) -> None:
    """Print a valid access token for a client.

    Returns the cached access token while it is valid; otherwise uses the
    cached refresh token to obtain a new one. When neither is usable, run
    'tokendokey login' first.
    """
    with exit_on_error():
        token = get_service(ctx).get_token(client_name, force=force)
    click.echo(token)


@click.command("mtls-token")
@client_option()
@click.option("-t", "--cert", "cert_path", required=True, help="Client certificate (PEM)")
@click.option("-k", "--key", "key_path", required=True, help="Client private key (PEM)")
@click.option(
    "-r",
    "--caCert",
    "ca_cert_path",
    default=None,
    help="CA certificate for verifying the token endpoint (PEM)",
)
@click.pass_context
def mtls_token(
    ctx: click.Context,
    client_name: str,
    cert_path: str,
    key_path: str,
    ca_cert_path: str | None,
) -> None:
    """Print a valid access token, using the mTLS direct grant if needed.

    Tries the cached access token, then the refresh token, then requests
    new tokens with the client certificate.
    """
    if not ca_cert_path:
        click.echo(
            style_warning("No --caCert given: the token endpoint's certificate will not be verified"),
            err=True,
        )

    with exit_on_error():
        try:
            identity = MTLSIdentity(
                client_cert_path=cert_path,
                client_key_path=key_path,
                ca_cert_path=ca_cert_path,
            )
        except ValidationError as e:
            raise TLSIdentityError("Invalid mTLS options:\n" + format_validation_errors(e)) from e
        token = get_service(ctx).get_mtls_token(client_name, identity)
    click.echo(token)

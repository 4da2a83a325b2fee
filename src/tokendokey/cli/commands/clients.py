"""Client profile commands for tokendokey CLI.

Commands:
    list    - List all clients, or show one client's config (secret masked)
    delete  - Remove a client profile and its cached tokens
"""

from __future__ import annotations

__all__ = ["delete", "list_clients"]

import json as json_module

import click

from ..helpers import client_option, exit_on_error, get_store, mask_secret
from ..styling import style_dim, style_header, style_success


@click.command("list")
@client_option(required=False)
@click.pass_context
def list_clients(ctx: click.Context, client_name: str | None) -> None:
    """List all clients, or display the settings of one client."""
    store = get_store(ctx)

    if client_name is None:
        names = store.list_clients()
        if not names:
            click.echo(style_dim(f"No clients configured in {store.root}."))
            return
        click.echo(style_header(f"Clients in {store.root}"))
        for name in names:
            click.echo(name)
        return

    with exit_on_error():
        config = store.load_config(client_name)

    data = config.model_dump(by_alias=True)
    if data.get("client_secret"):
        data["client_secret"] = mask_secret(data["client_secret"])

    click.echo(style_header(f"Client '{client_name}'"))
    click.echo(json_module.dumps(data, indent=2))


@click.command()
@client_option()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, client_name: str, yes: bool) -> None:
    """Remove a client profile, including its cached tokens."""
    store = get_store(ctx)

    with exit_on_error():
        path = store.client_dir(client_name)
        if not yes and path.is_dir():
            click.confirm(f"Delete client '{client_name}' ({path})?", abort=True)
        store.delete_client(client_name)

    click.echo(style_success(f"Deleted client '{client_name}'"))

"""Archive commands for tokendokey CLI.

Commands:
    export  - Write a client profile to tokendokey.key
    import  - Restore a client profile from tokendokey.key

The archive holds the client secret and cached tokens in plaintext.
"""

from __future__ import annotations

__all__ = ["export", "import_"]

from pathlib import Path

import click

from tokendokey.constants import ARCHIVE_FILENAME
from tokendokey.transfer import export_client, import_client

from ..helpers import client_option, exit_on_error, get_store
from ..styling import style_success, style_warning


@click.command()
@client_option()
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to write the archive to",
)
@click.pass_context
def export(ctx: click.Context, client_name: str, output_dir: Path) -> None:
    """Export a client profile to tokendokey.key."""
    with exit_on_error():
        archive_path = export_client(get_store(ctx), client_name, output_dir)

    click.echo(style_success(f"Exported '{client_name}' to {archive_path}"))
    click.echo(style_warning("The archive contains the client secret and tokens; keep it private."), err=True)


@click.command("import")
@client_option()
@click.option(
    "-i",
    "--input",
    "archive_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(ARCHIVE_FILENAME),
    show_default=True,
    help="Archive to import",
)
@click.pass_context
def import_(ctx: click.Context, client_name: str, archive_path: Path) -> None:
    """Import a client profile from tokendokey.key."""
    with exit_on_error():
        written = import_client(get_store(ctx), client_name, archive_path)

    click.echo(style_success(f"Imported '{client_name}' from {archive_path}"))
    for name in written:
        click.echo(f"  {name}")

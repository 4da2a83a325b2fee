"""Interactive prompt helpers for CLI commands."""

from __future__ import annotations

__all__ = [
    "prompt_optional",
    "prompt_secret",
    "prompt_with_retry",
    "wait_for_enter",
]

import click


def prompt_with_retry(prompt_text: str) -> str:
    """Prompt for a required value, retrying if empty.

    Args:
        prompt_text: Text to show in prompt.

    Returns:
        Non-empty string value from user.
    """
    while True:
        value: str = click.prompt(prompt_text, type=str, default="", show_default=False)
        if value.strip():
            return value.strip()
        click.echo("  This field is required.")


def prompt_optional(prompt_text: str, default: str = "") -> str:
    """Prompt for an optional value; empty input returns the default."""
    value: str = click.prompt(prompt_text, type=str, default=default, show_default=bool(default))
    return value.strip()


def prompt_secret(prompt_text: str) -> str:
    """Prompt for an optional value without echoing it."""
    value: str = click.prompt(prompt_text, type=str, default="", show_default=False, hide_input=True)
    return value.strip()


def wait_for_enter(message: str) -> None:
    """Print a message and block until the operator sends one line."""
    click.echo(message)
    click.get_text_stream("stdin").readline()

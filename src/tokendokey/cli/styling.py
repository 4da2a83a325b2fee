"""CLI output styling helpers.

- Cyan bold for section headers and labels
- Green for success messages (with checkmark)
- Red for error messages (with cross)
- Yellow for warnings
- Dim for neutral/empty state messages

Errors and warnings go to stderr. The stdout of get-token and mtls-token
carries only the token.
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_error",
    "style_header",
    "style_label",
    "style_success",
    "style_warning",
]

import click


def style_header(title: str) -> str:
    """Section header, e.g. "--- Device Login ---"."""
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_label(label: str) -> str:
    """Label with colon suffix, e.g. "Client:"."""
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_success(message: str) -> str:
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    return click.style(message, dim=True)


def style_warning(message: str) -> str:
    """Warning with "Warning:" prefix.

    Example:
        >>> click.echo(style_warning("No CA certificate given"), err=True)
        Warning: No CA certificate given
    """
    return click.style(f"Warning: {message}", fg="yellow", bold=True)

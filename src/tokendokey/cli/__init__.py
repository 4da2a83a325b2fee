"""Command-line interface for tokendokey.

Provides commands for initializing client profiles, obtaining tokens
and moving profiles between machines.
"""

from .main import cli, main

__all__ = ["cli", "main"]

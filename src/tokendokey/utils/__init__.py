"""Shared utilities for tokendokey."""

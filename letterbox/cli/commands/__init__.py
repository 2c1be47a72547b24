"""CLI commands module."""

from . import config, delete, flag, move, read

__all__ = ["read", "flag", "move", "delete", "config"]

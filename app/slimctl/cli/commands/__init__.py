"""CLI commands for slimctl.

This package contains all subcommand implementations.
"""

from slimctl.cli.commands import remove

__all__ = ["remove"]

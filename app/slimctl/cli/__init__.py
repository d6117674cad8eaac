"""CLI package for slimctl.

This package contains the Typer application and all subcommands.
"""

from slimctl.cli.main import app

__all__ = ["app"]

"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from slimctl import __version__
from slimctl.cli.commands import remove
from slimctl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="slimctl",
    help="Reclaim disk space from unused localizations and architectures.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"slimctl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
) -> None:
    """slimctl - Reclaim disk space from unused localizations and architectures.

    Removes or trashes resources while protecting code-signed files,
    excluded locations and the trash directories themselves.
    """
    configure_logging(verbose)
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# Register commands
app.command(name="remove")(remove.remove)


if __name__ == "__main__":
    app()

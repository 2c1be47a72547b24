"""Main CLI entry point for letterbox."""

import logging

import typer
from typing_extensions import Annotated

from letterbox import __version__
from letterbox.cli import commands

app = typer.Typer(
    name="letterbox",
    help="Read, flag and move messages on an IMAP server",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(commands.read.app, name="read")
app.add_typer(commands.flag.app, name="flag")
app.add_typer(commands.move.app, name="move")
app.add_typer(commands.delete.app, name="delete")
app.add_typer(commands.config.app, name="config")


@app.callback()
def callback(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log server calls")
    ] = False,
):
    """Read, flag and move messages on an IMAP server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show version information."""
    typer.echo(f"letterbox version {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

"""Flag command implementation."""

import typer
from typing_extensions import Annotated

from letterbox.cli.session import open_message
from letterbox.errors import InvalidFlagError

app = typer.Typer(help="Set or clear message flags")


@app.callback(invoke_without_command=True)
def flag(
    ctx: typer.Context,
    uid: Annotated[int, typer.Argument(help="Message UID")],
    name: Annotated[
        str, typer.Argument(help="Flag: flagged, answered, deleted, seen, draft")
    ],
    clear: Annotated[bool, typer.Option("--clear", help="Clear the flag instead")] = False,
    mailbox: Annotated[
        str | None, typer.Option("--mailbox", "-m", help="Mailbox holding the message")
    ] = None,
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Account name")
    ] = None,
):
    """Set or clear a flag on a message."""
    with open_message(uid, account, mailbox) as message:
        try:
            ok = message.set_flag(name, not clear)
        except InvalidFlagError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1)

    if not ok:
        typer.echo(f"Server rejected flag change on message {uid}", err=True)
        raise typer.Exit(1)

    action = "Cleared" if clear else "Set"
    typer.echo(f"{action} {name} on message {uid}")

"""Move command implementation."""

import typer
from typing_extensions import Annotated

from letterbox.cli.session import open_message

app = typer.Typer(help="Move a message to another mailbox")


@app.callback(invoke_without_command=True)
def move(
    ctx: typer.Context,
    uid: Annotated[int, typer.Argument(help="Message UID")],
    destination: Annotated[str, typer.Argument(help="Destination mailbox")],
    mailbox: Annotated[
        str | None, typer.Option("--mailbox", "-m", help="Mailbox holding the message")
    ] = None,
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Account name")
    ] = None,
):
    """Move a message to another mailbox."""
    with open_message(uid, account, mailbox) as message:
        source = message.mailbox
        moved = message.move_to_mailbox(destination)

    if not moved:
        typer.echo(f"Could not move message {uid} to {destination}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Moved message {uid} from {source} to {destination}")

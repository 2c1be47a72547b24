"""Delete command implementation."""

import typer
from typing_extensions import Annotated

from letterbox.cli.session import open_message

app = typer.Typer(help="Mark a message for deletion")


@app.callback(invoke_without_command=True)
def delete(
    ctx: typer.Context,
    uid: Annotated[int, typer.Argument(help="Message UID")],
    mailbox: Annotated[
        str | None, typer.Option("--mailbox", "-m", help="Mailbox holding the message")
    ] = None,
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Account name")
    ] = None,
):
    """Mark a message for deletion.

    The message is removed when the mailbox is next expunged.
    """
    with open_message(uid, account, mailbox) as message:
        deleted = message.delete()

    if not deleted:
        typer.echo(f"Could not mark message {uid} for deletion", err=True)
        raise typer.Exit(1)

    typer.echo(f"Marked message {uid} for deletion")

"""Read command implementation."""

import json

import typer
from typing_extensions import Annotated

from letterbox.cli.session import open_message
from letterbox.message import Message

app = typer.Typer(help="Display a message")

OUTPUT_FORMATS = ("text", "html", "json", "headers")


@app.callback(invoke_without_command=True)
def read(
    ctx: typer.Context,
    uid: Annotated[int, typer.Argument(help="Message UID")],
    mailbox: Annotated[
        str | None, typer.Option("--mailbox", "-m", help="Mailbox holding the message")
    ] = None,
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Account name")
    ] = None,
    output: Annotated[
        str, typer.Option("--output", "-o", help="Output format: text, html, json, headers")
    ] = "text",
    attachment: Annotated[
        str | None, typer.Option("--attachment", help="Show only attachments with this filename")
    ] = None,
    no_attachments: Annotated[
        bool, typer.Option("--no-attachments", help="Don't show attachment info")
    ] = False,
):
    """Display a message."""
    if output not in OUTPUT_FORMATS:
        typer.echo(
            f"Invalid output format '{output}'. Use one of: {', '.join(OUTPUT_FORMATS)}",
            err=True,
        )
        raise typer.Exit(1)

    with open_message(uid, account, mailbox) as message:
        if attachment is not None:
            _show_attachment(message, attachment)
            return

        if output == "json":
            typer.echo(json.dumps(message.to_dict(), indent=2))
            return

        _show_headers(message)
        if output == "headers":
            return

        typer.echo()
        body = message.get_message_body(html=output == "html")
        typer.echo(body if body is not None else "(no body)")

        if not no_attachments and message.attachments:
            typer.echo()
            typer.echo(f"Attachments ({len(message.attachments)}):")
            for item in message.attachments:
                _show_attachment_line(item)


def _show_headers(message: Message) -> None:
    """Print the header lines of a message."""
    typer.echo(f"From: {message.get_addresses('from', as_string=True) or ''}")
    for label, kind in (("To", "to"), ("Cc", "cc"), ("Reply-To", "reply_to")):
        value = message.get_addresses(kind, as_string=True)
        if value:
            typer.echo(f"{label}: {value}")
    if message.date:
        typer.echo(f"Date: {message.date.isoformat()}")
    typer.echo(f"Subject: {message.subject or ''}")

    flags = [flag for flag, enabled in message.status.items() if enabled]
    if flags:
        typer.echo(f"Flags: {', '.join(flags)}")


def _show_attachment_line(item) -> None:
    size = f"{item.size} bytes" if item.size is not None else "unknown size"
    typer.echo(f"  {item.filename or '(unnamed)'} ({item.mime_type}, {size})")


def _show_attachment(message: Message, filename: str) -> None:
    """Print metadata for attachments named filename; exit 1 if none."""
    found = message.get_attachments(filename)
    if found is None:
        typer.echo(f"No attachment named '{filename}'", err=True)
        raise typer.Exit(1)

    for item in found if isinstance(found, list) else [found]:
        _show_attachment_line(item)

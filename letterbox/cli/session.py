"""Helpers shared by commands that open a message on the server."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from letterbox.config import get_account, get_default, load_config
from letterbox.errors import LetterboxError, MessageNotFoundError
from letterbox.imap import ImapTransport
from letterbox.message import Message
from letterbox.message.decoding import set_target_charset


@contextmanager
def open_message(
    uid: int, account: str | None = None, mailbox: str | None = None
) -> Iterator[Message]:
    """Connect to the account and load one message.

    Prints an error and exits with status 1 when the account is missing,
    the connection fails or the message doesn't exist.
    """
    config = load_config()

    account_config = get_account(config, account)
    if not account_config:
        typer.echo("No account configured.", err=True)
        typer.echo("Run 'letterbox config init' and add an account to config.toml")
        raise typer.Exit(1)

    set_target_charset(get_default(config, "charset"))
    mailbox = mailbox or get_default(config, "mailbox")

    try:
        with ImapTransport.connect(account_config, mailbox) as transport:
            try:
                message = Message(uid, transport)
            except MessageNotFoundError as e:
                typer.echo(str(e), err=True)
                raise typer.Exit(1)
            yield message
    except LetterboxError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

"""A single message fetched from an IMAP mailbox.

Message pulls the overview, headers and body structure of one message
from the transport, then walks the structure to assemble a plaintext
body, an HTML body and a list of attachments. Everything is loaded once
at construction; the raw server records are cached on the instance and
can be refetched with ``force_reload=True``.

Usage:
    from letterbox.message import Message

    message = Message(uid, transport)
    print(message.subject)
    print(message.get_message_body())
    for attachment in message.get_attachments() or []:
        print(attachment.filename)
"""

import logging
import re
from datetime import datetime
from email.utils import parsedate_to_datetime

from letterbox.errors import InvalidFlagError, MessageNotFoundError, TransportError
from letterbox.message.addresses import format_addresses, parse_addresses
from letterbox.message.attachments import Attachment, propagate_description
from letterbox.message.headers import parse_header_block
from letterbox.message.models import (
    FLAG_TYPES,
    AddressRecord,
    HeaderBlock,
    Overview,
    PrimitiveType,
    StructureNode,
)
from letterbox.message.walker import StructureWalker

__all__ = [
    "Message",
    "Attachment",
    "AddressRecord",
    "PrimitiveType",
    "StructureNode",
    "FLAG_TYPES",
]

logger = logging.getLogger(__name__)

ADDRESS_TYPES = ("to", "cc", "bcc", "from", "reply_to")

_BR_RE = re.compile(r"<br(\s*)?/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


class Message:
    """One message as retrieved from the server.

    Attributes:
        transport: The ImapTransport (or compatible object) the message
            was loaded from.
        uid: Server UID of the message.
        mailbox: Mailbox the message currently lives in.
        subject: Subject from the overview record.
        date: Sent date, or None if it couldn't be parsed.
        size: Size in bytes as reported by the server.
        from_, to, cc, bcc, reply_to: Address lists. reply_to falls back
            to from_ when the header is missing.
        plaintext: Assembled plaintext body, or None.
        html: Assembled HTML body, or None.
        attachments: Attachments in structure order.

    Raises:
        MessageNotFoundError: If the server has no overview for the UID.
    """

    def __init__(self, uid: int, transport, mailbox: str | None = None):
        self.transport = transport
        self.uid = uid
        self.mailbox = mailbox or transport.active_mailbox

        self._overview: Overview | None = None
        self._headers: HeaderBlock | None = None
        self._structure: StructureNode | None = None

        self.subject: str | None = None
        self.date: datetime | None = None
        self.size: int | None = None
        self.status: dict[str, bool] = {}

        self.from_: list[AddressRecord] = []
        self.to: list[AddressRecord] = []
        self.cc: list[AddressRecord] = []
        self.bcc: list[AddressRecord] = []
        self.reply_to: list[AddressRecord] = []

        self.plaintext: str | None = None
        self.html: str | None = None
        self.attachments: list[Attachment] = []

        if not self._load():
            raise MessageNotFoundError(uid)

    def _load(self) -> bool:
        """Load overview, headers and structure from the server.

        Returns:
            False if there is no overview record for this message.
        """
        overview = self.get_overview()
        if overview is None:
            return False

        self.subject = overview.subject
        self.date = _parse_date(overview.date)
        self.size = overview.size
        self.status = {flag: bool(overview.flags.get(flag)) for flag in FLAG_TYPES}

        headers = self.get_headers()
        self.to = parse_addresses(headers.to)
        self.cc = parse_addresses(headers.cc)
        self.bcc = parse_addresses(headers.bcc)
        self.from_ = parse_addresses(headers.from_)
        self.reply_to = (
            parse_addresses(headers.reply_to) if headers.reply_to is not None else self.from_
        )

        structure = self.get_structure()
        if structure is None:
            return True

        walker = StructureWalker(self)
        if structure.parts is None:
            # Not multipart
            walker.walk(structure)
        else:
            for index, part in enumerate(structure.parts, start=1):
                propagate_description(part)
                walker.walk(part, str(index))

        self.plaintext = walker.plaintext
        self.html = walker.html
        self.attachments = walker.attachments

        return True

    def get_overview(self, force_reload: bool = False) -> Overview | None:
        """Return the overview record, fetching it on first use.

        Args:
            force_reload: Bypass the cached record and ask the server again.

        Returns:
            The Overview, or None if the server returned no record or the
            fetch failed.
        """
        if force_reload or self._overview is None:
            try:
                self._overview = self.transport.fetch_overview(self.uid)
            except TransportError as e:
                logger.warning("Could not fetch overview of message %s: %s", self.uid, e)
                self._overview = None

        return self._overview

    def get_headers(self, force_reload: bool = False) -> HeaderBlock:
        """Return the parsed header block, fetching it on first use.

        A failed fetch gives an empty HeaderBlock, which is not cached.
        """
        if force_reload or self._headers is None:
            try:
                self._headers = parse_header_block(self.transport.fetch_headers(self.uid))
            except TransportError as e:
                logger.warning("Could not fetch headers of message %s: %s", self.uid, e)
                return HeaderBlock()

        return self._headers

    def get_structure(self, force_reload: bool = False) -> StructureNode | None:
        """Return the body structure tree, fetching it on first use.

        Returns:
            Root StructureNode, or None if the fetch failed.
        """
        if force_reload or self._structure is None:
            try:
                self._structure = self.transport.fetch_structure(self.uid)
            except TransportError as e:
                logger.warning("Could not fetch structure of message %s: %s", self.uid, e)
                return None

        return self._structure

    def invalidate(self) -> None:
        """Drop the cached server records so the next access refetches them."""
        self._overview = None
        self._headers = None
        self._structure = None

    def get_message_body(self, html: bool = False) -> str | None:
        """Return the message body as plaintext or HTML.

        If the requested form is missing, it is derived from the other
        one: HTML is stripped of tags (line breaks kept), plaintext gets
        its newlines turned into <br>.

        Args:
            html: Return the HTML body instead of plaintext.

        Returns:
            The body, or None if the message has no body at all.
        """
        if html:
            if self.html is not None:
                return self.html
            if self.plaintext is not None:
                return nl2br(self.plaintext)
        else:
            if self.plaintext is not None:
                return self.plaintext
            if self.html is not None:
                return strip_tags(_BR_RE.sub("\n", self.html.strip()))

        return None

    def get_addresses(self, kind: str, as_string: bool = False):
        """Return the addresses of one kind.

        Args:
            kind: One of "to", "cc", "bcc", "from", "reply_to" (or "reply-to").
            as_string: Return a single "Name <addr>, addr" string.

        Returns:
            A list of AddressRecords (a single AddressRecord for "from"),
            a string when as_string is set, or None if there are none.
        """
        kind = kind.replace("-", "_")
        if kind not in ADDRESS_TYPES:
            return None

        records = self.from_ if kind == "from" else getattr(self, kind)
        if not records:
            return None

        if as_string:
            return format_addresses(records)

        if kind == "from":
            return records[0]

        return records

    def get_attachments(self, filename: str | None = None):
        """Return attachments, optionally only those named filename.

        Returns:
            Without filename: the attachment list, or None if empty.
            With filename: the matching Attachment if there is exactly
            one, a list if there are several, None if there are none.
        """
        if not self.attachments:
            return None

        if filename is None:
            return self.attachments

        results = [a for a in self.attachments if a.filename == filename]

        if not results:
            return None
        if len(results) == 1:
            return results[0]
        return results

    def check_flag(self, flag: str = "flagged") -> bool:
        """Return True if flag is set on this message."""
        return self.status.get(flag) is True

    def set_flag(self, flag: str, enable: bool = True) -> bool:
        """Set or clear a flag locally and on the server.

        Args:
            flag: One of flagged, answered, deleted, seen, draft.
            enable: Set the flag (True) or clear it (False).

        Returns:
            True if the server accepted the change.

        Raises:
            InvalidFlagError: For "recent" (server-managed) or unknown flags.
        """
        if flag not in FLAG_TYPES or flag == "recent":
            raise InvalidFlagError(flag)

        self.status[flag] = enable

        try:
            if enable:
                return self.transport.set_flag(self.uid, flag)
            return self.transport.clear_flag(self.uid, flag)
        except TransportError as e:
            logger.warning("Could not update flag %s on message %s: %s", flag, self.uid, e)
            return False

    def delete(self) -> bool:
        """Mark the message for deletion.

        The message stays in the mailbox until the transport expunges it.
        """
        self.status["deleted"] = True

        try:
            return self.transport.delete(self.uid)
        except TransportError as e:
            logger.warning("Could not delete message %s: %s", self.uid, e)
            return False

    def move_to_mailbox(self, mailbox: str) -> bool:
        """Move the message to another mailbox.

        The transport's active mailbox is switched to this message's
        mailbox for the move and restored afterwards, whatever happens.

        Returns:
            True if the server moved the message. A failure after the
            move itself, such as a failed expunge, doesn't undo it.
        """
        moved = False
        try:
            with self.transport.mailbox_context(self.mailbox):
                moved = self.transport.copy_and_move(self.uid, mailbox)
                self.transport.expunge()
        except TransportError as e:
            logger.warning("Could not move message %s to %s: %s", self.uid, mailbox, e)

        if moved:
            self.mailbox = mailbox

        return moved

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "uid": self.uid,
            "mailbox": self.mailbox,
            "date": self.date.isoformat() if self.date else None,
            "subject": self.subject,
            "size": self.size,
            "from": [a.to_dict() for a in self.from_],
            "to": [a.to_dict() for a in self.to],
            "cc": [a.to_dict() for a in self.cc],
            "bcc": [a.to_dict() for a in self.bcc],
            "reply_to": [a.to_dict() for a in self.reply_to],
            "flags": dict(self.status),
            "body_plain": self.plaintext,
            "body_html": self.html,
            "attachments": [a.to_dict() for a in self.attachments],
        }

    def __repr__(self) -> str:
        return f"Message(uid={self.uid!r}, mailbox={self.mailbox!r}, subject={self.subject!r})"


def nl2br(text: str) -> str:
    """Insert <br> before every newline, keeping the newlines."""
    return re.sub(r"(\r\n|\n\r|\n|\r)", r"<br>\1", text)


def strip_tags(html: str) -> str:
    return _TAG_RE.sub("", html)


def _parse_date(date_str: str) -> datetime | None:
    """Parse an RFC 2822 date string, returning None on failure."""
    if not date_str:
        return None
    try:
        return parsedate_to_datetime(date_str)
    except (ValueError, TypeError):
        return None

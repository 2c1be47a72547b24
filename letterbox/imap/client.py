"""IMAP transport for message loading.

Wraps imapclient to provide the calls Message needs: overview, header,
structure and body fetches by UID, flag changes, moves and mailbox
selection. Every imapclient or socket error is re-raised as
TransportError.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import imapclient
from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError

from letterbox.auth import login
from letterbox.config.schema import AccountConfig
from letterbox.errors import TransportError
from letterbox.imap.structure import from_bodystructure
from letterbox.message.headers import parse_header_block
from letterbox.message.models import FLAG_TYPES, Overview, StructureNode

logger = logging.getLogger(__name__)

# IMAP system flags keyed by our flag names
SYSTEM_FLAGS = {
    "recent": imapclient.RECENT,
    "flagged": imapclient.FLAGGED,
    "answered": imapclient.ANSWERED,
    "deleted": imapclient.DELETED,
    "seen": imapclient.SEEN,
    "draft": imapclient.DRAFT,
}

_FLAG_NAMES = {flag.lower(): name for name, flag in SYSTEM_FLAGS.items()}

OVERVIEW_ITEMS = [b"FLAGS", b"RFC822.SIZE", b"BODY.PEEK[HEADER.FIELDS (SUBJECT DATE)]"]

DEFAULT_PORT = 993


def _section(data: dict, prefix: bytes) -> bytes:
    """Return the first BODY[...] item in a FETCH response starting with prefix.

    Servers echo sections back without .PEEK and sometimes with different
    spacing, so we match on the prefix.
    """
    for key, value in data.items():
        if isinstance(key, bytes) and key.upper().startswith(prefix):
            return value or b""
    return b""


class ImapTransport:
    """Transport for one IMAP connection.

    Tracks the currently selected mailbox so it can be restored after
    operations that need a different one. Not safe for concurrent use.

    Example:
        with ImapTransport.connect(account, "INBOX") as transport:
            message = Message(4021, transport)
    """

    def __init__(self, client: IMAPClient, mailbox: str | None = None):
        """Initialize transport with an authenticated client.

        Args:
            client: Logged-in IMAPClient.
            mailbox: Mailbox already selected on the client, if any.
        """
        self._client = client
        self._mailbox = mailbox

    @classmethod
    @contextmanager
    def connect(cls, account: AccountConfig, mailbox: str = "INBOX") -> Iterator["ImapTransport"]:
        """Connect, log in and select mailbox; log out on exit.

        Raises:
            TransportError: If the server can't be reached.
            AuthenticationError: If the login fails.
        """
        host = account.get("host")
        if not host:
            raise TransportError("Account must have 'host' configured.")

        port = account.get("port", DEFAULT_PORT)
        logger.debug("Connecting to %s:%s", host, port)

        try:
            client = IMAPClient(host, port=port, ssl=account.get("ssl", True))
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"Could not connect to {host}:{port}: {e}") from e

        try:
            login(client, account)
            transport = cls(client)
            transport.select_mailbox(mailbox)
            yield transport
        finally:
            try:
                client.logout()
            except (IMAPClientError, OSError) as e:
                logger.debug("Error during logout: %s", e)

    @property
    def active_mailbox(self) -> str | None:
        """Name of the currently selected mailbox."""
        return self._mailbox

    def select_mailbox(self, mailbox: str) -> None:
        """Select mailbox read-write and make it the active one."""
        logger.debug("Selecting mailbox %s", mailbox)
        try:
            self._client.select_folder(mailbox)
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"Could not select {mailbox}: {e}") from e
        self._mailbox = mailbox

    @contextmanager
    def mailbox_context(self, mailbox: str) -> Iterator["ImapTransport"]:
        """Temporarily select mailbox, restoring the previous one on exit.

        The previous mailbox is restored even if the body raises.
        """
        previous = self._mailbox
        if mailbox != previous:
            self.select_mailbox(mailbox)
        try:
            yield self
        finally:
            if previous is not None and previous != self._mailbox:
                self.select_mailbox(previous)

    def _fetch(self, uid: int, items: list) -> dict | None:
        """Fetch items for one UID; None if the server returned no record."""
        logger.debug("FETCH %s %s", uid, items)
        try:
            response = self._client.fetch([uid], items)
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"FETCH {uid} failed: {e}") from e
        return response.get(uid)

    def fetch_overview(self, uid: int) -> Overview | None:
        """Fetch subject, date, size and flags of a message.

        Returns:
            Overview, or None if the UID doesn't exist in the mailbox.
        """
        data = self._fetch(uid, OVERVIEW_ITEMS)
        if data is None:
            return None

        headers = parse_header_block(_section(data, b"BODY[HEADER"))
        flags = dict.fromkeys(FLAG_TYPES, False)
        for flag in data.get(b"FLAGS", ()):
            name = _FLAG_NAMES.get(flag.lower() if isinstance(flag, bytes) else flag)
            if name:
                flags[name] = True

        return Overview(
            subject=headers.subject,
            date=headers.date,
            size=data.get(b"RFC822.SIZE", 0),
            flags=flags,
        )

    def fetch_headers(self, uid: int) -> bytes:
        """Fetch the raw header block of a message."""
        data = self._fetch(uid, [b"BODY.PEEK[HEADER]"])
        if data is None:
            raise TransportError(f"No headers for message {uid}")
        return _section(data, b"BODY[HEADER")

    def fetch_structure(self, uid: int) -> StructureNode:
        """Fetch the body structure of a message as a StructureNode tree."""
        data = self._fetch(uid, [b"BODYSTRUCTURE"])
        if data is None or b"BODYSTRUCTURE" not in data:
            raise TransportError(f"No body structure for message {uid}")
        return from_bodystructure(data[b"BODYSTRUCTURE"])

    def fetch_body(self, uid: int, part_path: str | None = None) -> bytes:
        """Fetch the raw (still transfer-encoded) body of a part.

        Args:
            uid: Message UID.
            part_path: Dot-separated part number, or None for the body of
                the whole message.
        """
        section = part_path or "TEXT"
        data = self._fetch(uid, [f"BODY.PEEK[{section}]".encode("ascii")])
        if data is None:
            raise TransportError(f"No body for message {uid} part {section}")
        return _section(data, f"BODY[{section}]".encode("ascii"))

    def set_flag(self, uid: int, flag: str) -> bool:
        """Add a system flag to a message. Returns True on success."""
        try:
            self._client.add_flags([uid], [SYSTEM_FLAGS[flag]])
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"Could not set {flag} on {uid}: {e}") from e
        return True

    def clear_flag(self, uid: int, flag: str) -> bool:
        """Remove a system flag from a message. Returns True on success."""
        try:
            self._client.remove_flags([uid], [SYSTEM_FLAGS[flag]])
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"Could not clear {flag} on {uid}: {e}") from e
        return True

    def delete(self, uid: int) -> bool:
        """Mark a message deleted; it is removed by the next expunge()."""
        return self.set_flag(uid, "deleted")

    def copy_and_move(self, uid: int, mailbox: str) -> bool:
        """Move a message to another mailbox.

        Uses MOVE when the server supports it, otherwise COPY followed by
        marking the original deleted. Call expunge() afterwards.
        """
        try:
            if self._client.has_capability("MOVE"):
                self._client.move([uid], mailbox)
            else:
                self._client.copy([uid], mailbox)
                self._client.add_flags([uid], [imapclient.DELETED])
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"Could not move {uid} to {mailbox}: {e}") from e
        return True

    def expunge(self) -> None:
        """Permanently remove messages marked deleted in the active mailbox."""
        try:
            self._client.expunge()
        except (IMAPClientError, OSError) as e:
            raise TransportError(f"EXPUNGE failed: {e}") from e

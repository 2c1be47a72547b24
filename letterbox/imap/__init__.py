"""IMAP transport for loading messages."""

from .client import ImapTransport
from .structure import from_bodystructure

__all__ = ["ImapTransport", "from_bodystructure"]

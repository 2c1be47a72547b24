"""Parsing of raw RFC 2822 header blocks."""

from email import policy
from email.parser import BytesHeaderParser
from email.utils import getaddresses

from letterbox.message.addresses import decode_header_value
from letterbox.message.models import HeaderBlock, RawAddress

_ADDRESS_HEADERS = {
    "from_": "From",
    "to": "To",
    "cc": "Cc",
    "bcc": "Bcc",
    "reply_to": "Reply-To",
}


def parse_header_block(raw: bytes | None) -> HeaderBlock:
    """Parse a raw header block into a HeaderBlock.

    Parsing stops at the first blank line, so a whole message (or an
    embedded message/rfc822 part) can be passed in as well.

    Args:
        raw: Header bytes as returned by the server.

    Returns:
        HeaderBlock with decoded subject and raw address lists. Headers
        that are missing stay None.
    """
    block = HeaderBlock()
    if not raw:
        return block

    # compat32 copes with real-world malformed headers
    msg = BytesHeaderParser(policy=policy.compat32).parsebytes(raw)

    block.subject = decode_header_value(msg.get("Subject", ""))
    block.date = str(msg.get("Date", "")).strip()

    for attr, header in _ADDRESS_HEADERS.items():
        values = msg.get_all(header)
        if values is None:
            continue
        setattr(block, attr, _parse_address_header([str(v) for v in values]))

    return block


def _parse_address_header(values: list[str]) -> list[RawAddress]:
    """Split address header values into RawAddress entries.

    Entries without an "@" (group names, "undisclosed-recipients:;")
    are dropped.
    """
    addresses = []
    for name, addr in getaddresses(values):
        mailbox, at, host = addr.strip().rpartition("@")
        if not at or not mailbox:
            continue
        addresses.append(RawAddress(mailbox=mailbox, host=host, name=name or None))
    return addresses

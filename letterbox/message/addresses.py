"""Conversion of header address lists into AddressRecord lists."""

from email.header import decode_header, make_header
from typing import Iterable

from letterbox.message.models import AddressRecord


def decode_header_value(raw: str | bytes | None) -> str:
    """Decode an RFC 2047 encoded header value to a Unicode string."""
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        return str(make_header(decode_header(raw)))
    except (LookupError, UnicodeDecodeError, ValueError):
        # Unknown charset in an encoded word - keep the raw text
        return raw


def parse_addresses(raw_list: Iterable | None) -> list[AddressRecord]:
    """Convert raw address entries into AddressRecords.

    Each entry needs ``mailbox`` and ``host`` attributes and may carry a
    ``name``. This matches both RawAddress and imapclient's ENVELOPE
    Address tuples, whose fields are bytes.

    Args:
        raw_list: Address entries in header order. None, or anything that
            isn't a list or tuple, yields an empty list.

    Returns:
        AddressRecords in the same order, duplicates kept.
    """
    if not isinstance(raw_list, (list, tuple)):
        return []

    records = []
    for entry in raw_list:
        mailbox = decode_header_value(getattr(entry, "mailbox", None))
        host = decode_header_value(getattr(entry, "host", None))
        name = getattr(entry, "name", None)

        record = AddressRecord(address=f"{mailbox}@{host}")
        if name:
            record.name = decode_header_value(name)
        records.append(record)

    return records


def format_addresses(records: list[AddressRecord]) -> str:
    """Render addresses as a single "Name <addr>, addr" header string."""
    return ", ".join(str(record) for record in records)

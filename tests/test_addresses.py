"""Tests for address parsing, header parsing and filename sanitizing."""

import pytest
from imapclient.response_types import Address

from letterbox.message.addresses import decode_header_value, format_addresses, parse_addresses
from letterbox.message.filenames import UNSAFE_FILENAME_CHARS, sanitize
from letterbox.message.headers import parse_header_block
from letterbox.message.models import AddressRecord, RawAddress

HEADERS = b"""\
From: Alice Smith <alice@example.com>
To: Bob Jones <bob@example.com>, carol@example.com
Cc: undisclosed-recipients:;
Reply-To: =?utf-8?q?Ren=C3=A9?= <rene@example.com>
Date: Mon, 15 Jan 2024 10:00:00 +0000
Subject: =?utf-8?b?UmVwb3J0IMOpdMOp?=

Body that should not be parsed.
"""


class TestParseAddresses:
    """Tests for parse_addresses()."""

    def test_raw_addresses(self):
        raw = [
            RawAddress("alice", "example.com", "Alice Smith"),
            RawAddress("bob", "example.com"),
        ]

        records = parse_addresses(raw)

        assert records == [
            AddressRecord("alice@example.com", "Alice Smith"),
            AddressRecord("bob@example.com"),
        ]

    def test_record_without_name_has_no_name(self):
        """Entries without a display name don't get an empty one."""
        record = parse_addresses([RawAddress("bob", "example.com", "")])[0]
        assert record.name is None
        assert record.to_dict() == {"address": "bob@example.com"}

    def test_imapclient_envelope_addresses(self):
        """imapclient Address tuples with bytes fields are accepted."""
        raw = (Address(b"=?utf-8?q?Ren=C3=A9?=", None, b"rene", b"example.com"),)

        records = parse_addresses(raw)

        assert records == [AddressRecord("rene@example.com", "René")]

    @pytest.mark.parametrize("raw", [None, "alice@example.com", 42, {"mailbox": "a"}])
    def test_non_list_input(self, raw):
        assert parse_addresses(raw) == []

    def test_duplicates_and_order_kept(self):
        raw = [RawAddress("b", "x.org"), RawAddress("a", "x.org"), RawAddress("b", "x.org")]

        records = parse_addresses(raw)

        assert [r.address for r in records] == ["b@x.org", "a@x.org", "b@x.org"]


class TestFormatAddresses:
    """Tests for address rendering."""

    def test_format(self):
        records = [AddressRecord("alice@example.com", "Alice"), AddressRecord("bob@example.com")]
        assert format_addresses(records) == "Alice <alice@example.com>, bob@example.com"

    def test_empty(self):
        assert format_addresses([]) == ""


class TestDecodeHeaderValue:
    """Tests for decode_header_value()."""

    def test_encoded_word(self):
        assert decode_header_value("=?utf-8?b?UmVwb3J0IMOpdMOp?=") == "Report été"

    def test_plain_value(self):
        assert decode_header_value("Hello") == "Hello"

    def test_bytes_value(self):
        assert decode_header_value(b"Hello") == "Hello"

    def test_none(self):
        assert decode_header_value(None) == ""

    def test_unknown_charset_kept_raw(self):
        raw = "=?x-no-such-charset?q?abc?="
        assert decode_header_value(raw) == raw


class TestParseHeaderBlock:
    """Tests for parse_header_block()."""

    def test_subject_and_date(self):
        block = parse_header_block(HEADERS)

        assert block.subject == "Report été"
        assert block.date == "Mon, 15 Jan 2024 10:00:00 +0000"

    def test_address_headers(self):
        block = parse_header_block(HEADERS)

        assert block.from_ == [RawAddress("alice", "example.com", "Alice Smith")]
        assert block.to == [
            RawAddress("bob", "example.com", "Bob Jones"),
            RawAddress("carol", "example.com"),
        ]

    def test_group_without_addresses_dropped(self):
        """Entries without an "@" are dropped, leaving an empty list."""
        assert parse_header_block(HEADERS).cc == []

    def test_missing_headers_are_none(self):
        block = parse_header_block(HEADERS)

        assert block.bcc is None

    def test_encoded_display_name(self):
        reply_to = parse_header_block(HEADERS).reply_to
        assert parse_addresses(reply_to) == [AddressRecord("rene@example.com", "René")]

    def test_empty_input(self):
        block = parse_header_block(b"")

        assert block.subject == ""
        assert block.from_ is None


class TestSanitize:
    """Tests for filename sanitizing."""

    def test_unsafe_characters_replaced(self):
        assert sanitize("a/b:c?d") == "a_b_c_d"

    def test_every_unsafe_character(self):
        assert sanitize(UNSAFE_FILENAME_CHARS) == "_" * len(UNSAFE_FILENAME_CHARS)

    def test_spaces_and_unicode_kept(self):
        assert sanitize("Q1 Report été.pdf") == "Q1 Report été.pdf"

    def test_idempotent(self):
        name = 'Re: "budget" <draft> [v2]'
        assert sanitize(sanitize(name)) == sanitize(name)

"""Tests for transfer-encoding and charset handling."""

import base64
from unittest.mock import patch

import pytest

from letterbox.message.decoding import (
    ENCODING_BASE64,
    ENCODING_QUOTED_PRINTABLE,
    decode,
    detect_charset,
    get_target_charset,
    normalize_charset,
    set_target_charset,
    strip_thread_index,
)


class TestDecode:
    """Tests for decode()."""

    def test_base64_code(self):
        """Numeric code 3 decodes base64."""
        assert decode(b"SGVsbG8=", ENCODING_BASE64) == b"Hello"

    def test_quoted_printable_code(self):
        """Numeric code 4 decodes quoted-printable."""
        assert decode(b"caf=C3=A9", ENCODING_QUOTED_PRINTABLE) == "café".encode()

    @pytest.mark.parametrize("encoding", ["base64", "BASE64", "3", b"base64"])
    def test_base64_names(self, encoding):
        """Encoding names are matched case-insensitively, digits as codes."""
        assert decode(b"SGVsbG8=", encoding) == b"Hello"

    @pytest.mark.parametrize("encoding", ["quoted-printable", "Quoted-Printable", "4"])
    def test_quoted_printable_names(self, encoding):
        assert decode(b"a=3Db", encoding) == b"a=b"

    @pytest.mark.parametrize("encoding", [0, 1, 2, 5, "7bit", "8bit", "binary", None])
    def test_other_encodings_unchanged(self, encoding):
        """Encodings other than base64 and QP pass the payload through."""
        assert decode(b"SGVsbG8=", encoding) == b"SGVsbG8="

    def test_malformed_base64_returns_payload(self):
        """A payload that isn't valid base64 is returned as-is."""
        assert decode(b"abcde", ENCODING_BASE64) == b"abcde"

    def test_unpadded_base64(self):
        """Base64 with its trailing padding stripped still decodes."""
        assert decode(b"SGVsbG8gdGhlcmU", ENCODING_BASE64) == b"Hello there"

    def test_unpadded_multiline_base64(self):
        assert decode(b"SGVsbG8g\r\ndGhlcmU\r\n", ENCODING_BASE64) == b"Hello there"

    def test_multiline_base64(self):
        """Line breaks inside base64 bodies are ignored."""
        payload = base64.encodebytes(b"x" * 200)
        assert b"\n" in payload
        assert decode(payload, ENCODING_BASE64) == b"x" * 200

    def test_qp_soft_line_breaks(self):
        assert decode(b"long=\nline", ENCODING_QUOTED_PRINTABLE) == b"longline"


class TestTargetCharset:
    """Tests for the process-wide target charset."""

    def test_default_is_utf8(self):
        assert get_target_charset() == "utf-8"

    def test_set_target_charset(self):
        set_target_charset("iso-8859-1")
        assert get_target_charset() == "iso-8859-1"

    def test_unknown_charset_rejected(self):
        """An unknown codec raises and leaves the target unchanged."""
        with pytest.raises(LookupError):
            set_target_charset("no-such-charset")
        assert get_target_charset() == "utf-8"


class TestDetectCharset:
    """Tests for detect_charset()."""

    def test_empty_payload(self):
        assert detect_charset(b"") is None

    def test_candidate_is_canonicalized(self):
        with patch("chardet.detect_all", return_value=[{"encoding": "ISO-8859-1"}]):
            assert detect_charset(b"caf\xe9") == "iso8859-1"

    def test_first_usable_guess_wins(self):
        """Guesses outside the candidates or unable to decode are skipped."""
        guesses = [{"encoding": "KOI8-R"}, {"encoding": "utf-8"}, {"encoding": "cp1252"}]
        with patch("chardet.detect_all", return_value=guesses):
            assert detect_charset(b"caf\xe9") == "cp1252"

    def test_non_candidate_falls_back_to_candidates(self):
        """Detected charsets outside the candidate list are ignored."""
        with patch("chardet.detect_all", return_value=[{"encoding": "KOI8-R"}]):
            assert detect_charset(b"\xc1\xc2") == "iso8859-1"

    def test_no_detection_walks_candidates(self):
        with patch("chardet.detect_all", return_value=[{"encoding": None}]):
            assert detect_charset(b"\x00\x01") == "ascii"


class TestNormalizeCharset:
    """Tests for normalize_charset()."""

    def test_utf8_passthrough(self):
        with patch("chardet.detect_all", return_value=[{"encoding": "utf-8"}]):
            assert normalize_charset("Grüße".encode()) == "Grüße"

    def test_latin1_converted(self):
        """Latin-1 bodies come out as proper text."""
        with patch("chardet.detect_all", return_value=[{"encoding": "ISO-8859-1"}]):
            assert normalize_charset(b"caf\xe9") == "café"

    @pytest.mark.parametrize(
        "text", ["naïve résumé", "Añoranza", "Ça va? Très bien.", "Grüße aus Köln"]
    )
    def test_latin1_bodies_detected(self, text):
        """Short Latin-1 bodies survive whatever chardet guesses first."""
        assert normalize_charset(text.encode("iso-8859-1")) == text

    def test_utf8_bodies_detected(self):
        assert normalize_charset("naïve résumé".encode()) == "naïve résumé"

    def test_unrepresentable_characters_replaced(self):
        """Characters missing from the target charset become "?"."""
        with patch("chardet.detect_all", return_value=[{"encoding": "utf-8"}]):
            assert normalize_charset("a€b".encode(), "ascii") == "a?b"

    def test_undetected_read_as_first_fitting_candidate(self):
        """Without a usable guess the first candidate that decodes is used."""
        with patch("chardet.detect_all", return_value=[{"encoding": None}]):
            assert normalize_charset(b"plain \xff text") == "plain ÿ text"

    def test_uses_configured_target(self):
        set_target_charset("ascii")
        with patch("chardet.detect_all", return_value=[{"encoding": "utf-8"}]):
            assert normalize_charset("naïve".encode()) == "na?ve"

    def test_wrong_detection_skipped(self):
        """A detected charset that can't decode the bytes is passed over."""
        with patch("chardet.detect_all", return_value=[{"encoding": "ascii"}]):
            assert normalize_charset(b"caf\xe9") == "café"

    def test_plain_ascii(self):
        assert normalize_charset(b"Hello world") == "Hello world"


class TestStripThreadIndex:
    """Tests for strip_thread_index()."""

    def test_removes_thread_index_line(self):
        payload = b"Thread-Index: AdQx1234==\nHello"
        assert strip_thread_index(payload) == b"\nHello"

    def test_keeps_mid_line_occurrence(self):
        """Only lines starting with the header name are removed."""
        payload = b"See Thread-Index: here"
        assert strip_thread_index(payload) == payload

    def test_multiple_lines(self):
        payload = b"a\nThread-Index: x\nb\nThread-Index: y\nc"
        assert strip_thread_index(payload) == b"a\n\nb\n\nc"

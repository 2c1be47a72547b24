"""Tests for body structure traversal."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from conftest import FakeTransport, multipart, node, text

from letterbox.message.models import PrimitiveType
from letterbox.message.walker import StructureWalker, child_path


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def walker(transport) -> StructureWalker:
    return StructureWalker(SimpleNamespace(uid=7, transport=transport))


def pdf(name: str):
    return node(
        PrimitiveType.APPLICATION,
        "pdf",
        disposition="attachment",
        disposition_parameters=[("filename", name)],
    )


class TestChildPath:
    """Tests for part path numbering."""

    def test_top_level(self):
        assert child_path(None, 1) == "1"

    def test_nested(self):
        assert child_path("2", 3) == "2.3"
        assert child_path("2.3", 1) == "2.3.1"


class TestWalk:
    """Tests for StructureWalker.walk()."""

    def test_single_part(self, walker, transport):
        transport.bodies[None] = b"Hello"

        walker.walk(text())

        assert walker.plaintext == "Hello"
        assert walker.html is None
        assert transport.body_paths == [None]

    def test_paths_in_document_order(self, walker, transport):
        structure = multipart(
            "mixed",
            [
                multipart("alternative", [text("plain"), text("html")]),
                pdf("a.pdf"),
                text("plain"),
            ],
        )

        walker.walk(structure, "1")

        assert transport.body_paths == ["1", "1.1", "1.1.1", "1.1.2", "1.3"]
        assert [a.part_path for a in walker.attachments] == ["1.2"]

    def test_alternative_routing(self, walker, transport):
        """Plain parts go to plaintext, HTML parts to HTML."""
        transport.bodies.update({"1": b"Hi there", "2": b"<p>Hi there</p>"})

        for index, part in enumerate([text("plain"), text("html")], start=1):
            walker.walk(part, str(index))

        assert walker.plaintext == "Hi there"
        assert walker.html == "<p>Hi there</p>"

    def test_separators(self, walker, transport):
        transport.bodies.update(
            {"1": b"  first  ", "2": b"second\n", "3": b"<b>a</b>", "4": b"<i>b</i>"}
        )

        for index, part in enumerate(
            [text("plain"), text("plain"), text("html"), text("html")], start=1
        ):
            walker.walk(part, str(index))

        assert walker.plaintext == "first\n\nsecond"
        assert walker.html == "<b>a</b><br><br><i>b</i>"

    def test_enriched_goes_to_html(self, walker, transport):
        transport.bodies["1"] = b"<bold>Hi</bold>"

        walker.walk(text("enriched"), "1")

        assert walker.plaintext is None
        assert walker.html == "<bold>Hi</bold>"

    def test_empty_bodies_skipped(self, walker, transport):
        transport.bodies.update({"1": b"   \r\n", "2": b"Real text"})

        walker.walk(text("plain"), "1")
        walker.walk(text("plain"), "2")

        assert walker.plaintext == "Real text"

    def test_non_text_parts_ignored(self, walker, transport):
        """Inline images and unattached messages don't contribute."""
        walker.walk(node(PrimitiveType.IMAGE, "png", disposition="inline"), "1")
        walker.walk(node(PrimitiveType.MESSAGE, "rfc822"), "2")
        walker.walk(node(PrimitiveType.AUDIO, "mpeg"), "3")

        assert walker.plaintext is None
        assert walker.html is None
        assert walker.attachments == []
        assert transport.body_paths == []

    def test_attachment_not_descended(self, walker, transport):
        """An attached message's inner parts are not walked."""
        transport.bodies["2"] = b"Subject: Fwd\r\n\r\n"
        attached = node(
            PrimitiveType.MESSAGE,
            "rfc822",
            disposition="attachment",
            parts=[text("plain")],
        )

        walker.walk(attached, "2")

        assert len(walker.attachments) == 1
        assert walker.attachments[0].filename == "Fwd.eml"
        assert transport.body_paths == ["2"]

    def test_text_attachment_merged_into_body(self, walker, transport):
        transport.bodies["2"] = b"notes"

        walker.walk(text("plain", disposition="attachment"), "2")

        assert walker.plaintext == "notes"
        assert walker.attachments == []

    def test_image_attachment_not_merged(self, walker, transport):
        transport.bodies["2"] = b"\x89PNG"
        image = node(
            PrimitiveType.IMAGE,
            "png",
            disposition="attachment",
            disposition_parameters=[("filename", "logo.png")],
        )

        walker.walk(image, "2")

        assert walker.plaintext is None
        assert [a.filename for a in walker.attachments] == ["logo.png"]

    def test_quoted_printable_with_thread_index(self, walker, transport):
        transport.bodies["1"] = b"Thread-Index: AdQx==\nCaf=C3=A9 ouvert"

        with patch("chardet.detect_all", return_value=[{"encoding": "utf-8"}]):
            walker.walk(text("plain", encoding="quoted-printable"), "1")

        assert walker.plaintext == "Café ouvert"

    def test_base64_body(self, walker, transport):
        transport.bodies["1"] = b"SGVsbG8gd29ybGQ="

        walker.walk(text("plain", encoding="base64"), "1")

        assert walker.plaintext == "Hello world"

    def test_fetch_failure_treated_as_empty(self, walker, transport):
        transport.failing_parts.add("1")
        transport.bodies["2"] = b"still here"

        walker.walk(text("plain"), "1")
        walker.walk(text("plain"), "2")

        assert walker.plaintext == "still here"

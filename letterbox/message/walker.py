"""Recursive traversal of a message's body structure.

The walker visits every node of the structure tree in document order.
Attachment nodes are collected and not descended into. Text and
multipart nodes have their body fetched, decoded and appended to either
the plaintext or the HTML buffer, then their children are walked with
part paths extended by the 1-based child index ("2" -> "2.1", "2.2").

Routing between the two buffers follows one rule: "plain" subtypes and
multiparts other than "alternative" go to plaintext, everything else
goes to HTML. That sends rarer text subtypes such as text/enriched to
the HTML buffer.
"""

import logging

from letterbox.errors import TransportError
from letterbox.message.attachments import Attachment, classify
from letterbox.message.decoding import decode, normalize_charset, strip_thread_index
from letterbox.message.models import PrimitiveType, StructureNode

logger = logging.getLogger(__name__)

PLAINTEXT_SEPARATOR = "\n\n"
HTML_SEPARATOR = "<br><br>"

_BODY_TYPES = (PrimitiveType.TEXT, PrimitiveType.MULTIPART)


def child_path(part_path: str | None, index: int) -> str:
    """Return the part path of the child at 1-based index."""
    if part_path:
        return f"{part_path}.{index}"
    return str(index)


class StructureWalker:
    """Walks a structure tree and assembles bodies and attachments.

    Transport calls are made one at a time in traversal order.

    Example:
        walker = StructureWalker(message)
        walker.walk(structure)
        walker.plaintext, walker.html, walker.attachments
    """

    def __init__(self, message):
        """Initialize the walker.

        Args:
            message: The Message being loaded. Its ``transport`` and
                ``uid`` are used to fetch part bodies.
        """
        self._message = message
        self.plaintext: str | None = None
        self.html: str | None = None
        self.attachments: list[Attachment] = []

    def walk(self, structure: StructureNode, part_path: str | None = None) -> None:
        """Process a node and, recursively, its children.

        Args:
            structure: Node to process.
            part_path: Part identifier of the node; None for the body of a
                non-multipart message.
        """
        attachment = classify(self._message, structure, part_path)
        if attachment is not None:
            self.attachments.append(attachment)
            return

        if structure.primitive_type not in _BODY_TYPES:
            # Inline images, unattached messages etc. don't contribute
            return

        body = self._process_body(structure, part_path)
        subtype = structure.subtype.lower()

        if subtype == "plain" or (structure.is_multipart and subtype != "alternative"):
            self._append_plaintext(body)
        else:
            self._append_html(body)

        for index, part in enumerate(structure.parts or [], start=1):
            self.walk(part, child_path(part_path, index))

    def _process_body(self, structure: StructureNode, part_path: str | None) -> str:
        """Fetch a part body and return it decoded to text.

        A failed fetch is logged and treated as an empty body.
        """
        try:
            raw = self._message.transport.fetch_body(self._message.uid, part_path)
        except TransportError as e:
            logger.warning("Could not fetch body of part %s: %s", part_path or "root", e)
            return ""

        raw = strip_thread_index(raw)
        return normalize_charset(decode(raw, structure.encoding))

    def _append_plaintext(self, body: str) -> None:
        text = body.strip()
        if not text:
            return

        if self.plaintext is None:
            self.plaintext = text
        else:
            self.plaintext += PLAINTEXT_SEPARATOR + text

    def _append_html(self, body: str) -> None:
        if not body.strip():
            return

        if self.html is None:
            self.html = body
        else:
            self.html += HTML_SEPARATOR + body

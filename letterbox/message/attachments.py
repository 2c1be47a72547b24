"""Attachment classification and descriptors.

A structure node becomes an attachment when its disposition is
"attachment" and it isn't a text or multipart part; text parts with an
attachment disposition are still merged into the message body.

Forwarded messages (message/rfc822 parts) often arrive without any
filename. For those we read the embedded Subject header and use it as
the filename, falling back to "email", the way webmail clients do.
"""

import logging
from email.utils import decode_rfc2231
from urllib.parse import unquote

from letterbox.errors import AttachmentError, TransportError
from letterbox.message.addresses import decode_header_value
from letterbox.message.decoding import decode
from letterbox.message.filenames import sanitize
from letterbox.message.headers import parse_header_block
from letterbox.message.models import PrimitiveType, StructureNode

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_FILENAME = "email"
MESSAGE_EXTENSION = ".eml"


class Attachment:
    """A file attached to a message.

    Holds the structure node and part path needed to fetch the content
    later; nothing is downloaded until get_data() is called.

    Attributes:
        message: The Message this attachment belongs to.
        structure: The StructureNode describing the part.
        part_path: Dot-separated part identifier, or None for the root.
        filename: Resolved filename, or None if the part has no name.
    """

    def __init__(self, message, structure: StructureNode, part_path: str | None):
        if structure.primitive_type in (PrimitiveType.TEXT, PrimitiveType.MULTIPART):
            raise AttachmentError(
                f"Part {part_path} is {structure.mime_type}, not an attachment"
            )

        self.message = message
        self.structure = structure
        self.part_path = part_path
        self.filename = resolve_filename(structure)

    @property
    def mime_type(self) -> str:
        return self.structure.mime_type

    @property
    def encoding(self) -> int | str:
        return self.structure.encoding

    @property
    def size(self) -> int | None:
        return self.structure.size

    def get_data(self) -> bytes:
        """Fetch the attachment content and remove its transfer encoding.

        Raises:
            TransportError: If the server call fails.
        """
        raw = self.message.transport.fetch_body(self.message.uid, self.part_path)
        return decode(raw, self.structure.encoding)

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "content_type": self.mime_type,
            "size": self.size,
            "part": self.part_path,
        }

    def __repr__(self) -> str:
        return f"Attachment({self.filename!r}, {self.mime_type!r}, part={self.part_path!r})"


def resolve_filename(structure: StructureNode) -> str | None:
    """Pick the filename for a part from its parameters.

    Disposition "filename" beats Content-Type "name"; RFC 2231 extended
    values ("filename*") are decoded, RFC 2047 encoded words too.

    Raises:
        AttachmentError: If an extended parameter value is malformed.
    """
    parameters = structure.get_parameters()

    for key in ("filename", "name"):
        extended = parameters.get(key + "*")
        if extended:
            try:
                charset, _, text = decode_rfc2231(extended)
                return unquote(text, encoding=charset or "us-ascii", errors="strict")
            except (LookupError, ValueError) as e:
                raise AttachmentError(f"Malformed {key}* parameter: {extended!r}") from e

        value = parameters.get(key)
        if value:
            return decode_header_value(value)

    return None


def is_attachment(structure: StructureNode) -> bool:
    """Return True if the node should be treated as an attachment."""
    if (structure.disposition or "").lower() != "attachment":
        return False
    return structure.primitive_type not in (PrimitiveType.TEXT, PrimitiveType.MULTIPART)


def propagate_description(structure: StructureNode) -> None:
    """Sanitize a part's description and use it as its filename.

    Only "name" and "filename" parameters that already exist are
    rewritten.
    """
    if not structure.description:
        return

    clean = sanitize(structure.description)
    structure.description = clean
    structure.rename(clean)


def message_filename(message, part_path: str | None) -> str:
    """Build a filename for an attached message from its Subject header.

    Raises:
        TransportError: If the embedded message can't be fetched.
    """
    raw = message.transport.fetch_body(message.uid, part_path)
    subject = parse_header_block(raw).subject.strip()

    filename = sanitize(subject) if subject else DEFAULT_MESSAGE_FILENAME
    return filename.replace("\r", "").replace("\n", "") + MESSAGE_EXTENSION


def classify(message, structure: StructureNode, part_path: str | None) -> Attachment | None:
    """Turn a structure node into an Attachment if it is one.

    Args:
        message: The Message being loaded; provides transport and uid.
        structure: Node to classify. May gain a synthetic "filename"
            disposition parameter and have its names rewritten.
        part_path: Part identifier of the node, None for the root.

    Returns:
        The Attachment, or None if the node isn't an attachment or the
        attachment couldn't be built.
    """
    if not is_attachment(structure):
        return None

    try:
        propagate_description(structure)

        parameters = structure.get_parameters()
        named = any(key in parameters for key in ("name", "filename", "name*", "filename*"))
        if not named and structure.primitive_type is PrimitiveType.MESSAGE:
            structure.add_disposition_parameter(
                "filename", message_filename(message, part_path)
            )

        return Attachment(message, structure, part_path)
    except (AttachmentError, TransportError) as e:
        logger.warning("Skipping attachment at part %s: %s", part_path or "root", e)
        return None

"""Data models for message structure, addresses and overview records."""

from dataclasses import dataclass, field
from enum import IntEnum

# Flags reported by the server for every message, in overview order.
FLAG_TYPES = ("recent", "flagged", "answered", "deleted", "seen", "draft")


class PrimitiveType(IntEnum):
    """Primary MIME body types, numbered the way IMAP libraries report them."""

    TEXT = 0
    MULTIPART = 1
    MESSAGE = 2
    APPLICATION = 3
    AUDIO = 4
    IMAGE = 5
    VIDEO = 6
    OTHER = 7

    @classmethod
    def from_code(cls, code: "int | str | bytes | None") -> "PrimitiveType":
        """Map a numeric code or a MIME major type name to a PrimitiveType.

        Unrecognized codes and names map to OTHER.
        """
        if isinstance(code, bytes):
            code = code.decode("ascii", errors="replace")

        if isinstance(code, str):
            code = code.strip()
            if code.isdigit():
                code = int(code)
            else:
                try:
                    return cls[code.upper()]
                except KeyError:
                    return cls.OTHER

        try:
            return cls(code)
        except ValueError:
            return cls.OTHER

    def __str__(self) -> str:
        return self.name.lower()


@dataclass
class StructureNode:
    """One node of a message's MIME body structure.

    Parameters are kept as ordered (attribute, value) pairs, matching the
    server's BODYSTRUCTURE response. Nodes are owned by the Message that
    loaded them; the attachment classifier may rewrite parameters during
    a load but nothing is sent back to the server.
    """

    primitive_type: PrimitiveType
    subtype: str
    encoding: int | str = "7bit"
    disposition: str | None = None
    parameters: list[tuple[str, str]] = field(default_factory=list)
    disposition_parameters: list[tuple[str, str]] = field(default_factory=list)
    parts: list["StructureNode"] | None = None
    description: str | None = None
    content_id: str | None = None
    size: int | None = None

    @property
    def is_multipart(self) -> bool:
        return self.primitive_type is PrimitiveType.MULTIPART

    @property
    def mime_type(self) -> str:
        """Full content type, e.g. "text/plain"."""
        return f"{self.primitive_type}/{self.subtype.lower()}"

    def get_parameters(self) -> dict[str, str]:
        """Return body and disposition parameters as one dict.

        Attribute names are lowercased. Disposition parameters are applied
        last, so a "filename" from Content-Disposition wins over a
        same-named Content-Type parameter.
        """
        merged: dict[str, str] = {}
        for attribute, value in self.parameters:
            merged[attribute.lower()] = value
        for attribute, value in self.disposition_parameters:
            merged[attribute.lower()] = value
        return merged

    def add_disposition_parameter(self, attribute: str, value: str) -> None:
        self.disposition_parameters.append((attribute, value))

    def rename(self, filename: str) -> None:
        """Rewrite the existing "name" and "filename" parameters to filename.

        Parameters that aren't present are left absent.
        """
        self.parameters = [
            (attribute, filename if attribute.lower() == "name" else value)
            for attribute, value in self.parameters
        ]
        self.disposition_parameters = [
            (attribute, filename if attribute.lower() == "filename" else value)
            for attribute, value in self.disposition_parameters
        ]


@dataclass
class AddressRecord:
    """A single mailbox address with an optional display name."""

    address: str
    name: str | None = None

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} <{self.address}>"
        return self.address

    def to_dict(self) -> dict:
        data = {"address": self.address}
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass
class RawAddress:
    """An address as it comes out of a header or an IMAP ENVELOPE."""

    mailbox: str
    host: str
    name: str | None = None


@dataclass
class Overview:
    """Summary record for a message: subject, date, size and flag state."""

    subject: str = ""
    date: str = ""  # Raw RFC 2822 date string
    size: int = 0
    flags: dict[str, bool] = field(default_factory=dict)


@dataclass
class HeaderBlock:
    """Parsed header block of a message.

    Address lists are None when the header is absent, and a (possibly
    empty) list of RawAddress otherwise.
    """

    subject: str = ""
    date: str = ""
    from_: list[RawAddress] | None = None
    to: list[RawAddress] | None = None
    cc: list[RawAddress] | None = None
    bcc: list[RawAddress] | None = None
    reply_to: list[RawAddress] | None = None

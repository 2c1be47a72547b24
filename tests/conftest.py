"""Shared fixtures: an in-memory transport and structure node builders."""

from contextlib import contextmanager

import pytest

from letterbox.errors import TransportError
from letterbox.message.decoding import DEFAULT_TARGET_CHARSET, set_target_charset
from letterbox.message.models import Overview, PrimitiveType, StructureNode


class FakeTransport:
    """Serves canned server records and records every call made to it.

    Bodies are keyed by part path (None for the whole-message body).
    Part paths listed in ``failing_parts`` raise TransportError.
    """

    def __init__(
        self,
        overview: Overview | None = None,
        headers: bytes = b"",
        structure: StructureNode | None = None,
        bodies: dict | None = None,
        mailbox: str = "INBOX",
    ):
        self.overview = overview
        self.headers = headers
        self.structure = structure
        self.bodies = bodies or {}
        self.failing_parts: set = set()
        self.flag_result = True
        self.move_error: TransportError | None = None
        self.expunge_error: TransportError | None = None
        self.calls: list[tuple] = []
        self._mailbox = mailbox

    @property
    def active_mailbox(self) -> str:
        return self._mailbox

    @property
    def body_paths(self) -> list:
        """Part paths fetched so far, in order."""
        return [call[1] for call in self.calls if call[0] == "body"]

    def select_mailbox(self, mailbox: str) -> None:
        self.calls.append(("select", mailbox))
        self._mailbox = mailbox

    @contextmanager
    def mailbox_context(self, mailbox: str):
        previous = self._mailbox
        self.select_mailbox(mailbox)
        try:
            yield self
        finally:
            self.select_mailbox(previous)

    def fetch_overview(self, uid):
        self.calls.append(("overview", uid))
        return self.overview

    def fetch_headers(self, uid):
        self.calls.append(("headers", uid))
        return self.headers

    def fetch_structure(self, uid):
        self.calls.append(("structure", uid))
        return self.structure

    def fetch_body(self, uid, part_path=None):
        self.calls.append(("body", part_path))
        if part_path in self.failing_parts:
            raise TransportError(f"part {part_path} unavailable")
        return self.bodies.get(part_path, b"")

    def set_flag(self, uid, flag):
        self.calls.append(("set_flag", flag))
        return self.flag_result

    def clear_flag(self, uid, flag):
        self.calls.append(("clear_flag", flag))
        return self.flag_result

    def delete(self, uid):
        self.calls.append(("delete", uid))
        return self.flag_result

    def copy_and_move(self, uid, mailbox):
        self.calls.append(("move", mailbox))
        if self.move_error is not None:
            raise self.move_error
        return True

    def expunge(self):
        self.calls.append(("expunge",))
        if self.expunge_error is not None:
            raise self.expunge_error


def node(
    primitive_type: PrimitiveType,
    subtype: str,
    *,
    parts: list | None = None,
    disposition: str | None = None,
    encoding="7bit",
    parameters: list | None = None,
    disposition_parameters: list | None = None,
    description: str | None = None,
) -> StructureNode:
    """Build a StructureNode with sensible defaults."""
    return StructureNode(
        primitive_type=primitive_type,
        subtype=subtype,
        encoding=encoding,
        disposition=disposition,
        parameters=parameters or [],
        disposition_parameters=disposition_parameters or [],
        parts=parts,
        description=description,
    )


def text(subtype: str = "plain", **kwargs) -> StructureNode:
    return node(PrimitiveType.TEXT, subtype, **kwargs)


def multipart(subtype: str, parts: list, **kwargs) -> StructureNode:
    return node(PrimitiveType.MULTIPART, subtype, parts=parts, **kwargs)


@pytest.fixture
def overview() -> Overview:
    return Overview(
        subject="Quarterly numbers",
        date="Mon, 15 Jan 2024 10:00:00 +0000",
        size=4096,
        flags={"seen": True, "flagged": False, "recent": True},
    )


@pytest.fixture(autouse=True)
def reset_target_charset():
    """Restore the process-wide target charset after each test."""
    yield
    set_target_charset(DEFAULT_TARGET_CHARSET)

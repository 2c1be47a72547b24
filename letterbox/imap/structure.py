"""Conversion of IMAP BODYSTRUCTURE responses into StructureNode trees.

imapclient returns BODYSTRUCTURE as a nested BodyData tuple. For a
multipart node the first element is a list of child parts:

    ([part, part, ...], subtype, params, disposition, language, location)

Single parts carry seven basic fields followed by type-specific fields
and the extension data:

    (type, subtype, params, id, description, encoding, size, ...)

    text/*          ... lines, md5, disposition, ...
    message/rfc822  ... envelope, body, lines, md5, disposition, ...
    anything else   ... md5, disposition, ...

Extension data is optional, so every index past the basic fields may be
missing.
"""

from letterbox.message.models import PrimitiveType, StructureNode

# Index of the disposition field in a single-part body
_DISPOSITION_INDEX = {
    PrimitiveType.TEXT: 9,
    PrimitiveType.MESSAGE: 11,
}
_DEFAULT_DISPOSITION_INDEX = 8

# Index of the disposition field in a multipart body
_MULTIPART_DISPOSITION_INDEX = 3


def _text(value) -> str | None:
    """Convert a BODYSTRUCTURE atom to str; NIL stays None."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _get(body, index: int):
    return body[index] if len(body) > index else None


def _pairs(values) -> list[tuple[str, str]]:
    """Turn a flat (attr, value, attr, value, ...) list into pairs."""
    if not values or not isinstance(values, (list, tuple)):
        return []

    items = [_text(v) or "" for v in values]
    return list(zip(items[0::2], items[1::2]))


def _disposition(value) -> tuple[str | None, list[tuple[str, str]]]:
    """Split a disposition field into its type and parameters."""
    if not value or not isinstance(value, (list, tuple)):
        return None, []

    kind = _text(value[0])
    params = _pairs(value[1]) if len(value) > 1 else []
    return (kind.lower() if kind else None), params


def _is_multipart(body) -> bool:
    return bool(body) and isinstance(body[0], list)


def from_bodystructure(body) -> StructureNode:
    """Build a StructureNode tree from an imapclient BODYSTRUCTURE.

    Args:
        body: The BodyData (or equivalent nested tuple) for one message.

    Returns:
        Root StructureNode. Multipart nodes get their children in
        ``parts``; single parts have ``parts`` set to None.
    """
    if _is_multipart(body):
        disposition, dparams = _disposition(_get(body, _MULTIPART_DISPOSITION_INDEX))
        return StructureNode(
            primitive_type=PrimitiveType.MULTIPART,
            subtype=(_text(_get(body, 1)) or "mixed").lower(),
            encoding="7bit",
            disposition=disposition,
            parameters=_pairs(_get(body, 2)),
            disposition_parameters=dparams,
            parts=[from_bodystructure(part) for part in body[0]],
        )

    primitive_type = PrimitiveType.from_code(_text(_get(body, 0)))
    subtype = (_text(_get(body, 1)) or "").lower()

    if primitive_type is PrimitiveType.MESSAGE and subtype != "rfc822":
        # Only message/rfc822 carries the envelope/body/lines fields
        index = _DEFAULT_DISPOSITION_INDEX
    else:
        index = _DISPOSITION_INDEX.get(primitive_type, _DEFAULT_DISPOSITION_INDEX)
    disposition, dparams = _disposition(_get(body, index))

    size = _get(body, 6)
    return StructureNode(
        primitive_type=primitive_type,
        subtype=subtype,
        encoding=(_text(_get(body, 5)) or "7bit").lower(),
        disposition=disposition,
        parameters=_pairs(_get(body, 2)),
        disposition_parameters=dparams,
        parts=None,
        description=_text(_get(body, 4)),
        content_id=_text(_get(body, 3)),
        size=size if isinstance(size, int) else None,
    )

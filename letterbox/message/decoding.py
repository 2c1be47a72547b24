"""Transfer-encoding and charset handling for message bodies.

Bodies come off the wire still transfer-encoded and in whatever charset
the sender used. decode() undoes the transfer encoding, and
normalize_charset() detects the charset and converts the text so that
it is representable in the configured target charset.

Neither function raises on bad input: a payload that can't be decoded
is passed through unchanged and a warning is logged.
"""

import base64
import binascii
import codecs
import logging
import quopri
import re

import chardet

logger = logging.getLogger(__name__)

# Transfer encoding codes as reported by IMAP body structures
ENCODING_7BIT = 0
ENCODING_8BIT = 1
ENCODING_BINARY = 2
ENCODING_BASE64 = 3
ENCODING_QUOTED_PRINTABLE = 4
ENCODING_OTHER = 5

# Charsets we accept from detection, tried in this order when chardet
# has no usable guess. Detected charsets outside this list are ignored.
CHARSET_CANDIDATES = (
    "ascii",
    "iso-8859-1",
    "cp1252",
    "iso-8859-15",
    "utf-8",
    "utf-8-sig",
    "utf-7",
    "euc-jp",
    "shift_jis",
    "cp932",
    "euc_jis_2004",
    "shift_jis_2004",
    "iso-2022-jp",
    "utf-16",
    "utf-32",
    "utf-16-le",
    "utf-16-be",
    "utf-32-le",
    "utf-32-be",
)

DEFAULT_TARGET_CHARSET = "utf-8"

_target_charset = DEFAULT_TARGET_CHARSET

# Outlook inserts this header line into body parts
_THREAD_INDEX_RE = re.compile(rb"^Thread-Index:.*$", re.MULTILINE)


def _canonical(charset: str) -> str | None:
    try:
        return codecs.lookup(charset).name
    except LookupError:
        return None


_CANONICAL_CANDIDATES = frozenset(
    name for name in (_canonical(c) for c in CHARSET_CANDIDATES) if name
)


def get_target_charset() -> str:
    """Return the charset all text bodies are normalized to."""
    return _target_charset


def set_target_charset(charset: str) -> None:
    """Set the process-wide target charset.

    Raises:
        LookupError: If Python has no codec for the charset.
    """
    global _target_charset

    codecs.lookup(charset)
    _target_charset = charset


def decode(payload: bytes, encoding: int | str | None) -> bytes:
    """Undo a content transfer encoding.

    Args:
        payload: Raw body bytes as fetched from the server.
        encoding: Numeric transfer-encoding code (3 = base64,
            4 = quoted-printable) or its name, in any case.

    Returns:
        Decoded bytes. Unknown encodings (7bit, 8bit, binary, ...) return
        the payload unchanged, and so does a payload that fails to decode.
    """
    if isinstance(encoding, bytes):
        encoding = encoding.decode("ascii", errors="replace")
    if isinstance(encoding, str):
        encoding = encoding.strip().lower()
        if encoding.isdigit():
            encoding = int(encoding)

    if encoding in (ENCODING_QUOTED_PRINTABLE, "quoted-printable"):
        return quopri.decodestring(payload)

    if encoding in (ENCODING_BASE64, "base64"):
        # Senders sometimes drop the trailing "=" padding
        compact = b"".join(payload.split())
        compact += b"=" * (-len(compact) % 4)
        try:
            return base64.b64decode(compact)
        except (binascii.Error, ValueError) as e:
            logger.warning("Could not base64-decode payload, keeping raw bytes: %s", e)
            return payload

    return payload


def _decodes(payload: bytes, charset: str) -> bool:
    try:
        payload.decode(charset)
    except (UnicodeDecodeError, LookupError):
        return False
    return True


def detect_charset(payload: bytes) -> str | None:
    """Detect the charset of payload among CHARSET_CANDIDATES.

    chardet's guesses are taken in order of confidence, skipping those
    outside the candidate list or that can't decode the payload. If none
    is usable, the candidates are tried in list order.

    Returns:
        The canonical codec name, or None for an empty payload.
    """
    if not payload:
        return None

    for result in chardet.detect_all(payload):
        detected = result.get("encoding")
        canonical = _canonical(detected) if detected else None
        if canonical in _CANONICAL_CANDIDATES and _decodes(payload, canonical):
            return canonical
        logger.debug("Ignoring detected charset %s", detected)

    for charset in CHARSET_CANDIDATES:
        if _decodes(payload, charset):
            return _canonical(charset)

    return None


def normalize_charset(payload: bytes, target_charset: str | None = None) -> str:
    """Convert a decoded body to text in the target charset.

    Characters the target charset can't represent are replaced rather
    than raising. Only an empty payload has no detected charset; it is
    read as the target charset.

    Args:
        payload: Body bytes with the transfer encoding already removed.
        target_charset: Charset to convert to. Defaults to the configured
            process-wide target charset.

    Returns:
        The body as a string.
    """
    target = target_charset or _target_charset
    source = detect_charset(payload)

    if source is None:
        return payload.decode(target, errors="replace")

    text = payload.decode(source)

    if source != _canonical(target):
        # Transliterate: drop what the target can't represent
        text = text.encode(target, errors="replace").decode(target)

    return text


def strip_thread_index(payload: bytes) -> bytes:
    """Blank out "Thread-Index:" lines left in body parts by Outlook."""
    return _THREAD_INDEX_RE.sub(b"", payload)

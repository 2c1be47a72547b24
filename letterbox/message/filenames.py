"""Filename sanitization for attachment names."""

import re

# Characters that are unsafe in filenames on at least one common filesystem
UNSAFE_FILENAME_CHARS = '<>"{}|\\^[]`;/?:@&=$,'

_UNSAFE_RE = re.compile("[" + re.escape(UNSAFE_FILENAME_CHARS) + "]")


def sanitize(name: str) -> str:
    """Replace every filesystem-unsafe character in name with "_".

    Spaces and other characters outside UNSAFE_FILENAME_CHARS are kept,
    so "Q1 Report" stays "Q1 Report".
    """
    return _UNSAFE_RE.sub("_", name)

"""Text cleanup shared by request schemas.

Used from `mode="before"` field validators, so every helper passes
non-string input through untouched and lets the field type reject it.
"""

import re
import unicodedata
from typing import Any

_TAG = re.compile(r"<[^>]+>")


def _invisible(ch: str) -> bool:
    # Whitespace or a Unicode format character (zero-width space, BOM, ...)
    return ch.isspace() or unicodedata.category(ch) == "Cf"


def strip_invisible_edges(value: str) -> str:
    """Trim whitespace and invisible format characters from both ends only."""
    chars = list(value)
    while chars and _invisible(chars[-1]):
        chars.pop()
    first = next((i for i, ch in enumerate(chars) if not _invisible(ch)), len(chars))
    return "".join(chars[first:])


def clean_text(
    value: Any,
    *,
    required: bool,
    label: str = "Field",
    invisible: bool = False,
    html: bool = False,
) -> Any:
    """
    Trim a text field and make sure it can be written back out as UTF-8.

    A blank result is an error for required fields and None otherwise.
    `html=True` drops tags first; `invisible=True` also trims format
    characters, so "\\u200bMorning Flow" and "Morning Flow" compare equal.
    """
    if not isinstance(value, str):
        return value
    if html:
        value = _TAG.sub("", value)
    value = strip_invisible_edges(value) if invisible else value.strip()
    if not value:
        if required:
            raise ValueError(f"{label} cannot be blank")
        return None
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates from JSON escapes such as "\ud800"
        raise ValueError(f"{label} contains invalid Unicode characters")
    return value

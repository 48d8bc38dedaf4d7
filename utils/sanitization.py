# utils/sanitization.py
from typing import Optional
import re

CONTROL_CHARS = r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f-\x9f]"

# Non-breaking and exotic spaces that PDF/HTML extraction leaves behind
_SPACE_CHARS = r"[\t\f\v\u00a0\u2000-\u200a\u202f\u205f\u3000]"
_ZERO_WIDTH = r"[\u200b-\u200d\ufeff]"


def normalize_newlines(value: str) -> str:
    return value.replace("\r\n", "\n").replace("\r", "\n")


def normalize_whitespace(value: Optional[str]) -> str:
    """
    Canonicalize extracted document text while keeping line structure.

    - CRLF / CR become LF
    - control chars and zero-width chars are dropped
    - tabs and exotic spaces become a single space, runs of spaces collapse
    - trailing spaces on each line are removed
    - three or more consecutive newlines collapse to one blank line
    """
    if value is None:
        return ""

    text = normalize_newlines(value)
    text = re.sub(CONTROL_CHARS, "", text)
    text = re.sub(_ZERO_WIDTH, "", text)
    text = re.sub(_SPACE_CHARS, " ", text)
    text = re.sub(r" {2,}", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text.strip()


def clean_text(value: Optional[str]) -> str:
    """Single-line form: every whitespace run becomes one space."""
    if value is None:
        return ""

    text = re.sub(CONTROL_CHARS, "", value)
    text = re.sub(_ZERO_WIDTH, "", text)
    text = text.strip()
    text = re.sub(r"\s+", " ", text)

    return text


def is_nonempty_text(value: Optional[str]) -> bool:
    return bool(clean_text(value))

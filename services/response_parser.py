# services/response_parser.py
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

MIN_ITEM_CHARS = 20

_NUMBERING = re.compile(r"^\s*(?:\(?\d{1,2}[.)]|\d{1,2}\s*-)\s*")
_BULLET = re.compile(r"^\s*[•\-*–]\s*")
_MARKDOWN_EMPHASIS = re.compile(r"\*\*(.+?)\*\*")

PREAMBLE_PREFIXES = (
    "here are",
    "here is",
    "here's",
    "based on",
    "sure",
    "certainly",
    "below are",
    "the following",
    "in summary",
)

NONE_SENTINEL = "NONE"


def strip_list_marker(line: str) -> str:
    line = _NUMBERING.sub("", line)
    line = _BULLET.sub("", line)
    line = _MARKDOWN_EMPHASIS.sub(r"\1", line)
    return line.strip()


def is_preamble(line: str) -> bool:
    lowered = line.strip().lower()
    return lowered.startswith(PREAMBLE_PREFIXES) or lowered.endswith(":")


def parse_list_items(text: str, limit: int = 4, drop_preamble: bool = False) -> List[str]:
    """
    Split generated text into list items: numbering and bullets removed,
    items of MIN_ITEM_CHARS or fewer dropped, first `limit` kept.
    """
    if not text:
        return []

    items = []
    for raw in re.split(r"\n+", text):
        line = strip_list_marker(raw)
        if len(line) <= MIN_ITEM_CHARS:
            continue
        if drop_preamble and is_preamble(line):
            continue
        if line.upper().startswith(NONE_SENTINEL) and len(line) <= len(NONE_SENTINEL) + 1:
            continue
        items.append(line)

    return items[:limit]


def is_none_answer(text: Optional[str]) -> bool:
    if text is None:
        return True
    cleaned = text.strip().strip(".:;\"'`*").strip()
    return not cleaned or cleaned.upper() == NONE_SENTINEL


# ------------------------------------------------------------
# Per-chunk field answers
# ------------------------------------------------------------

class _NotFoundInChunk:
    """Soft negative: this chunk did not contain the field. Others may."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND_IN_CHUNK"

    def __bool__(self) -> bool:
        return False


NOT_FOUND_IN_CHUNK = _NotFoundInChunk()


@dataclass(frozen=True)
class Found:
    value: str

    def __bool__(self) -> bool:
        return True


ChunkAnswer = Union[Found, _NotFoundInChunk]


FIELD_LABELS = {
    "research_question": ("RESEARCH QUESTION", "RESEARCH_QUESTION", "QUESTION"),
    "methodology": ("METHODOLOGY", "METHOD", "METHODS"),
}


def _field_pattern(labels) -> re.Pattern:
    alternatives = "|".join(re.escape(label).replace("\\ ", r"[ _]") for label in labels)
    return re.compile(
        r"^\s*[*#-]*\s*(?:" + alternatives + r")\s*[*]*\s*[:\-]\s*(.*)$",
        re.IGNORECASE | re.MULTILINE,
    )


_FIELD_PATTERNS = {name: _field_pattern(labels) for name, labels in FIELD_LABELS.items()}


def parse_chunk_fields(text: str) -> Dict[str, ChunkAnswer]:
    """
    Parse an answer shaped like
        RESEARCH QUESTION: <answer or NONE>
        METHODOLOGY: <answer or NONE>
    into {field: Found(value) | NOT_FOUND_IN_CHUNK}. Continuation lines under a
    label belong to that label.
    """
    result = {name: NOT_FOUND_IN_CHUNK for name in FIELD_LABELS}
    if not text:
        return result

    positions = []
    for name, pattern in _FIELD_PATTERNS.items():
        match = pattern.search(text)
        if match:
            positions.append((match.start(), match.start(1), name))
    positions.sort()

    for idx, (_, value_start, name) in enumerate(positions):
        value_end = positions[idx + 1][0] if idx + 1 < len(positions) else len(text)
        value = " ".join(text[value_start:value_end].split())
        if not is_none_answer(value):
            result[name] = Found(value)

    return result

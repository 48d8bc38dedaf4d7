# services/budget/truncation.py
import re
from dataclasses import dataclass
from enum import Enum
from typing import List

TRUNCATION_MARKER = "\n\n[...]\n\n"
ELLIPSIS = "..."

# A sentence ends at a run of terminal punctuation followed by whitespace or end of text
_SENTENCE_END = re.compile(r"[.!?]+(?=\s|$)")


class TruncationStrategy(str, Enum):
    MIDPOINT = "midpoint"
    SENTENCE_BOUNDARY = "sentence_boundary"


def truncate_midpoint(text: str, max_length: int) -> str:
    """
    Keep the head and the tail, drop the middle.
    Both halves shrink by the marker so the result never exceeds max_length.
    """
    if len(text) <= max_length:
        return text
    if max_length <= len(TRUNCATION_MARKER):
        return text[:max_length]

    half = (max_length - len(TRUNCATION_MARKER)) // 2
    return text[:half] + TRUNCATION_MARKER + text[len(text) - half:]


def sentence_ends(text: str) -> List[int]:
    return [m.end() for m in _SENTENCE_END.finditer(text)]


def truncate_sentences(text: str, max_length: int, strict: bool = False) -> str:
    """
    Keep whole sentences from the start while they fit.

    When not even the first sentence fits, it is hard-cut and an ellipsis is
    appended, so the output can exceed max_length by len(ELLIPSIS). With
    strict=True the cut leaves room for the ellipsis instead.
    """
    if len(text) <= max_length:
        return text

    best = 0
    for end in sentence_ends(text):
        if end > max_length:
            break
        best = end

    if best > 0:
        return text[:best].rstrip()

    cut = max_length - len(ELLIPSIS) if strict else max_length
    if cut <= 0:
        return text[:max_length]
    return text[:cut].rstrip() + ELLIPSIS


def truncate(
    text: str,
    max_length: int,
    strategy: TruncationStrategy = TruncationStrategy.SENTENCE_BOUNDARY,
    strict: bool = False,
) -> str:
    if max_length < 0:
        raise ValueError("max_length must be non-negative")
    if strategy == TruncationStrategy.MIDPOINT:
        return truncate_midpoint(text, max_length)
    return truncate_sentences(text, max_length, strict=strict)


@dataclass(frozen=True)
class BudgetedText:
    text: str
    label: str = ""

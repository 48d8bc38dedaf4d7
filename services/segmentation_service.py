# services/segmentation_service.py
"""
Anchor-based section segmentation for heading-free document text.

PDF/HTML extraction hands us one long string with no structure. We locate four
anchors (abstract, introduction, conclusion, references) with ordered regex
patterns and derive every section purely from their offsets:

    [ title ][abstract anchor][ abstract ][intro anchor][ introduction ]
    [conclusion anchor][ conclusion ][references anchor] ...

The abstract keyword is only accepted ahead of the first introduction heading;
every later anchor is searched only after the end of the previous located
anchor, so sections never overlap. A missing anchor yields an empty section;
downstream steps fall back to other sections.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from api.models.analysis_models import SegmentedDocument
from utils.sanitization import clean_text, normalize_whitespace

logger = logging.getLogger(__name__)

# Section caps (chars). Policy values, not physical limits.
TITLE_MAX_CHARS = 300
ABSTRACT_MAX_CHARS = 3000
INTRODUCTION_MAX_CHARS = 6000
CONCLUSION_MAX_CHARS = 4000

TITLE_FALLBACK_MIN_CHARS = 20

# ASCII flag keeps case folding locale independent
_FLAGS = re.IGNORECASE | re.MULTILINE | re.ASCII

# Optional heading number: "1", "1.", "I.", "IV", "5)"
_NUM = r"(?:(?:\d{1,2}|[IVX]{1,4})[.)]?[ \t]*)?"
_TAIL = r"[ \t]*[:.—–-]?[ \t]*"
# Keyword alone on its line, or followed by a separator
_HEADING_END = r"(?:[ \t]*[:.—–][ \t]*|[ \t]+-[ \t]+|[ \t]*$)"

ABSTRACT_ANCHORS: List[Pattern] = [
    re.compile(r"^[ \t]*abstract" + _HEADING_END, _FLAGS),
    re.compile(r"\babstract[ \t]*[:.—–][ \t]*", _FLAGS),
    re.compile(r"^[ \t]*summary" + _HEADING_END, _FLAGS),
]

INTRODUCTION_ANCHORS: List[Pattern] = [
    re.compile(
        r"^[ \t]*(?:(?:\d{1,2}|[IVX]{1,4})[.)]?[ \t]*introduction\b" + _TAIL
        + r"|introduction" + _HEADING_END + r")",
        _FLAGS,
    ),
    re.compile(r"\b(?:\d{1,2}|[IVX]{1,4})[.)]?[ \t]+introduction\b" + _TAIL, _FLAGS),
]

CONCLUSION_ANCHORS: List[Pattern] = [
    re.compile(r"^[ \t]*" + _NUM + r"(?:conclusions?|concluding[ \t]+remarks)\b" + _TAIL, _FLAGS),
    re.compile(r"^[ \t]*" + _NUM + r"discussion\b" + _TAIL, _FLAGS),
    re.compile(r"^[ \t]*" + _NUM + r"limitations\b" + _TAIL, _FLAGS),
    re.compile(r"^[ \t]*" + _NUM + r"future[ \t]+work\b" + _TAIL, _FLAGS),
]

REFERENCES_ANCHORS: List[Pattern] = [
    re.compile(r"^[ \t]*" + _NUM + r"(?:references|bibliography)\b" + _TAIL, _FLAGS),
    re.compile(r"^[ \t]*" + _NUM + r"acknowledge?ments?\b" + _TAIL, _FLAGS),
]

# Watermark / page furniture that ends up in front of the title
NOISE_LINE_PATTERNS: List[Pattern] = [
    re.compile(r"^arxiv:\s*\d{4}\.\d{4,5}(?:v\d+)?.*$", re.IGNORECASE | re.ASCII),
    re.compile(r"^\d{1,4}$"),
    re.compile(r"^page\s+\d+(?:\s+of\s+\d+)?$", re.IGNORECASE | re.ASCII),
    re.compile(r"^preprint\b.*$", re.IGNORECASE | re.ASCII),
    re.compile(r"^under review\b.*$", re.IGNORECASE | re.ASCII),
    re.compile(r"^(?:published|accepted) (?:as|at|in)\b.*$", re.IGNORECASE | re.ASCII),
    re.compile(r"^(?:doi:|https?://)\S+$", re.IGNORECASE | re.ASCII),
]


@dataclass(frozen=True)
class Anchor:
    start: int
    end: int


def find_anchor(
    text: str,
    patterns: List[Pattern],
    floor: int = 0,
    limit: Optional[int] = None,
) -> Optional[Anchor]:
    """
    Try each pattern in order; the first pattern with a match inside
    text[floor:limit] wins and only its first occurrence counts.
    """
    end = len(text) if limit is None else limit
    for pattern in patterns:
        match = pattern.search(text, floor, end)
        if match:
            return Anchor(start=match.start(), end=match.end())
    return None


def _span(text: str, start: int, end: int) -> str:
    if end <= start:
        return ""
    return text[start:end].strip()


def _cap(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[:limit].rstrip()


def _is_noise_line(line: str) -> bool:
    stripped = line.strip()
    return any(p.match(stripped) for p in NOISE_LINE_PATTERNS)


def strip_title_noise(value: str) -> str:
    lines = [ln for ln in value.split("\n") if ln.strip() and not _is_noise_line(ln)]
    return clean_text(" ".join(lines))


def fallback_title(text: str) -> str:
    """First line of at least 20 chars that is not page furniture."""
    for line in text.split("\n"):
        candidate = line.strip()
        if len(candidate) >= TITLE_FALLBACK_MIN_CHARS and not _is_noise_line(candidate):
            return candidate
    return ""


def _title_block_end(text: str, boundary: int) -> int:
    """
    End of the title block inside text[:boundary] when no abstract keyword
    exists: the first blank line after the first meaningful line, else the
    first line break, else the boundary itself.
    """
    pos = 0
    while pos < boundary:
        line_end = text.find("\n", pos, boundary)
        if line_end == -1:
            return boundary
        line = text[pos:line_end]
        if line.strip() and not _is_noise_line(line):
            blank = text.find("\n\n", pos, boundary)
            return blank if blank != -1 else line_end
        pos = line_end + 1
    return boundary


class SectionSegmenter:
    """Stateless; identical input text always produces identical output."""

    def segment(self, full_text: str) -> SegmentedDocument:
        if not isinstance(full_text, str):
            raise TypeError(f"full_text must be str, got {type(full_text).__name__}")

        text = normalize_whitespace(full_text)
        if not text:
            return SegmentedDocument()

        # The abstract keyword only counts ahead of the first introduction heading
        intro = find_anchor(text, INTRODUCTION_ANCHORS)
        abstract = find_anchor(text, ABSTRACT_ANCHORS, limit=intro.start if intro else None)

        floor = intro.end if intro else (abstract.end if abstract else 0)
        conclusion = find_anchor(text, CONCLUSION_ANCHORS, floor)

        if conclusion:
            floor = conclusion.end
        references = find_anchor(text, REFERENCES_ANCHORS, floor)

        logger.debug(
            "Anchors: abstract=%s intro=%s conclusion=%s references=%s",
            abstract, intro, conclusion, references,
        )

        # ---- Title ----
        title = ""
        title_end = 0
        if abstract:
            title_end = abstract.start
            title = strip_title_noise(text[:title_end])
        elif intro:
            title_end = _title_block_end(text, intro.start)
            title = strip_title_noise(text[:title_end])
        if not title:
            title = fallback_title(text)

        # ---- Abstract ----
        abstract_text = ""
        if abstract:
            abstract_stop = next(
                (a.start for a in (intro, conclusion, references) if a),
                len(text),
            )
            abstract_text = _span(text, abstract.end, abstract_stop)
        elif intro:
            # Positional fallback: everything between title and introduction
            abstract_text = _span(text, title_end, intro.start)

        # ---- Introduction ----
        intro_text = ""
        if intro:
            intro_stop = next(
                (a.start for a in (conclusion, references) if a),
                len(text),
            )
            intro_text = _span(text, intro.end, intro_stop)

        # ---- Conclusion ----
        conclusion_text = ""
        if conclusion and references:
            conclusion_text = _span(text, conclusion.end, references.start)

        return SegmentedDocument(
            title=_cap(title, TITLE_MAX_CHARS),
            abstract=_cap(abstract_text, ABSTRACT_MAX_CHARS),
            introduction=_cap(intro_text, INTRODUCTION_MAX_CHARS),
            conclusion=_cap(conclusion_text, CONCLUSION_MAX_CHARS),
        )


section_segmenter = SectionSegmenter()

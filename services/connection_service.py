# services/connection_service.py
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from api.models.analysis_models import AnalysisResult, Connection, utc_timestamp
from services.budget.budget_planner import BudgetClass, TokenCounter, render_prompt
from services.budget.truncation import TruncationStrategy, truncate
from services.llm_service import Capability, GenerationClient
from services.prompts import PROMPT_TEMPLATES
from utils.json_extraction import extract_json_object
from utils.sanitization import clean_text

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 5
STRENGTH_THRESHOLD = 7
STRENGTH_MIN, STRENGTH_MAX = 1, 10
DESCRIPTION_MAX = 200
EXCERPT_CHARS = 1500
NO_CONNECTION_SENTINEL = "no significant connection"
THEME_CONNECTION_TYPE = "theme"


class ComparisonMode(str, Enum):
    STRUCTURED = "structured"
    THEME = "theme"


# ------------------------------------------------------------
# Verdict parsing
# ------------------------------------------------------------

@dataclass(frozen=True)
class ParseResult:
    """Either a parsed verdict dict or the reason parsing failed."""

    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: Dict[str, Any]) -> "ParseResult":
        return cls(value=value)

    @classmethod
    def fail(cls, error: str) -> "ParseResult":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.value is not None

    def or_else(self, recover: Callable[[], "ParseResult"]) -> "ParseResult":
        return self if self.is_ok else recover()


def parse_verdict_json(text: str) -> ParseResult:
    candidate = extract_json_object(text or "")
    if candidate is None:
        return ParseResult.fail("no JSON object in response")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return ParseResult.fail(f"invalid JSON: {e}")
    if not isinstance(data, dict):
        return ParseResult.fail("verdict is not an object")
    return ParseResult.ok(data)


_HAS_CONNECTION_RE = re.compile(r'"?hasConnection"?\s*[:=]\s*"?(true|false|yes|no)', re.IGNORECASE)
_TYPE_RE = re.compile(r'"?type"?\s*[:=]\s*"?([A-Za-z_ -]+?)"?\s*(?:[,}\n]|$)', re.IGNORECASE)
_STRENGTH_RE = re.compile(r'"?strength"?\s*[:=]\s*"?(-?\d+(?:\.\d+)?)', re.IGNORECASE)
_DESCRIPTION_RE = re.compile(r'"?description"?\s*[:=]\s*"((?:[^"\\]|\\.)*)', re.IGNORECASE)


def recover_verdict_fields(text: str) -> ParseResult:
    """Field-by-field regex recovery for verdicts that are not valid JSON."""
    if not text:
        return ParseResult.fail("empty response")

    has_match = _HAS_CONNECTION_RE.search(text)
    if not has_match:
        return ParseResult.fail("hasConnection not recoverable")

    verdict: Dict[str, Any] = {"hasConnection": has_match.group(1).lower() in ("true", "yes")}

    type_match = _TYPE_RE.search(text)
    if type_match:
        verdict["type"] = type_match.group(1).strip()
    strength_match = _STRENGTH_RE.search(text)
    if strength_match:
        verdict["strength"] = strength_match.group(1)
    description_match = _DESCRIPTION_RE.search(text)
    if description_match:
        verdict["description"] = description_match.group(1).replace('\\"', '"')

    return ParseResult.ok(verdict)


def parse_verdict(text: str) -> ParseResult:
    return parse_verdict_json(text).or_else(lambda: recover_verdict_fields(text))


def clamp_strength(value: Any) -> Optional[int]:
    try:
        strength = int(round(float(value)))
    except (TypeError, ValueError):
        return None
    return max(STRENGTH_MIN, min(STRENGTH_MAX, strength))


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def accept_verdict(verdict: Dict[str, Any]) -> bool:
    """hasConnection, a real type, and a clamped strength of at least the threshold."""
    if not _truthy(verdict.get("hasConnection")):
        return False
    connection_type = str(verdict.get("type") or "").strip().lower()
    if not connection_type or connection_type == "none":
        return False
    strength = clamp_strength(verdict.get("strength"))
    return strength is not None and strength >= STRENGTH_THRESHOLD


def truncate_description(text: str) -> str:
    text = clean_text(text)
    if len(text) <= DESCRIPTION_MAX:
        return text
    return text[:DESCRIPTION_MAX - 3].rstrip() + "..."


# ------------------------------------------------------------
# Symmetric edges
# ------------------------------------------------------------

def has_connection_to(result: AnalysisResult, paper_id: str) -> bool:
    return any(c.paper_id == paper_id for c in result.connections)


def add_connection(result: AnalysisResult, connection: Connection) -> bool:
    """Append unless an edge to the same paperId already exists."""
    if has_connection_to(result, connection.paper_id):
        return False
    result.connections.append(connection)
    return True


def mirror_connection(source: AnalysisResult, connection: Connection) -> Connection:
    return Connection(
        paper_id=source.timestamp,
        paper_title=source.title,
        type=connection.type,
        strength=connection.strength,
        description=connection.description,
        detected_at=connection.detected_at,
    )


class ConnectionGraph:
    """
    Pairwise comparison of a new result against the most recent prior
    results. Only the HISTORY_LIMIT newest priors are ever compared.
    """

    def __init__(
        self,
        client: GenerationClient,
        mode: ComparisonMode = ComparisonMode.STRUCTURED,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.client = client
        self.mode = ComparisonMode(mode)
        self.history_limit = history_limit

    def _token_counter(self) -> Optional[TokenCounter]:
        return self.client.count_prompt_tokens if self.client.has(Capability.COUNT_TOKENS) else None

    def _comparison_prompt(self, new: AnalysisResult, prior: AnalysisResult) -> str:
        """
        Both papers share one COMPARISON window. Field order is the fill
        order: short fields first, so the long ones split what is left.
        """
        if self.mode == ComparisonMode.THEME:
            template = PROMPT_TEMPLATES["connection_theme"]
            fields = {
                "title_a": new.title,
                "title_b": prior.title,
                "summary_a": _excerpt(new.summary),
                "summary_b": _excerpt(prior.summary),
            }
        else:
            template = PROMPT_TEMPLATES["connection_structured"]
            fields = {
                "title_a": new.title,
                "title_b": prior.title,
                "findings_a": _bullets(new.key_findings),
                "findings_b": _bullets(prior.key_findings),
                "gaps_a": _bullets(new.research_gaps),
                "gaps_b": _bullets(prior.research_gaps),
                "abstract_a": _excerpt(new.abstract),
                "abstract_b": _excerpt(prior.abstract),
            }
        return render_prompt(template, fields, BudgetClass.COMPARISON, self._token_counter())

    def _connection_from_response(self, response: str, prior: AnalysisResult) -> Optional[Connection]:
        if self.mode == ComparisonMode.THEME:
            text = clean_text(response)
            if not text or NO_CONNECTION_SENTINEL in text.lower():
                return None
            return Connection(
                paper_id=prior.timestamp,
                paper_title=prior.title,
                type=THEME_CONNECTION_TYPE,
                description=truncate_description(text),
                detected_at=utc_timestamp(),
            )

        parsed = parse_verdict(response)
        if not parsed.is_ok:
            logger.warning(f"Unparseable connection verdict for '{prior.title}': {parsed.error}")
            return None
        verdict = parsed.value
        if not accept_verdict(verdict):
            return None

        return Connection(
            paper_id=prior.timestamp,
            paper_title=prior.title,
            type=str(verdict.get("type")).strip(),
            strength=clamp_strength(verdict.get("strength")),
            description=truncate_description(str(verdict.get("description") or "")),
            detected_at=utc_timestamp(),
        )

    def compare(self, new: AnalysisResult, prior: AnalysisResult) -> Optional[Connection]:
        """One pair. Any failure means no connection for this pair."""
        try:
            prompt = self._comparison_prompt(new, prior)
            response = self.client.write(prompt)
        except Exception as e:
            logger.warning(f"Connection check against '{prior.title}' failed: {e}")
            return None
        return self._connection_from_response(response, prior)

    def detect(self, new: AnalysisResult, priors: Sequence[AnalysisResult]) -> List[Connection]:
        """`priors` newest first, as the store keeps them."""
        recent = [p for p in priors if p.timestamp != new.timestamp][: self.history_limit]
        logger.info(f"🔗 Checking '{new.title}' against {len(recent)} recent analyses ({self.mode.value} mode)")

        connections = []
        for prior in recent:
            connection = self.compare(new, prior)
            if connection is not None:
                logger.info(f"Connection found: '{new.title}' <-> '{prior.title}' ({connection.type})")
                connections.append(connection)
        return connections

    def link(self, new: AnalysisResult, priors: Sequence[AnalysisResult]) -> List[Connection]:
        """
        Detect, then record each accepted connection on both results. The
        reverse edge is appended to the prior only if it has none to `new`.
        Priors are mutated in place; the caller persists them.
        """
        by_id = {p.timestamp: p for p in priors}
        added = []
        for connection in self.detect(new, priors):
            if add_connection(new, connection):
                added.append(connection)
            prior = by_id.get(connection.paper_id)
            if prior is not None:
                add_connection(prior, mirror_connection(new, connection))
        return added


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else "(none)"


def _excerpt(text: str) -> str:
    return truncate(text or "", EXCERPT_CHARS, TruncationStrategy.SENTENCE_BOUNDARY, strict=True)

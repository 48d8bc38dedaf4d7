# File: workflow.py
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from agents.gap_analysis_agent import gap_analysis_agent
from agents.key_findings_agent import key_findings_agent
from agents.methodology_agent import methodology_agent
from agents.paper_summarization_agent import paper_summarization_agent
from agents.trajectory_agent import trajectory_agent
from api.models.analysis_models import AnalysisResult, RawDocument, SegmentedDocument
from services.budget.budget_planner import TextPreparationError
from services.llm_service import Capability, GenerationClient, REQUIRED_CAPABILITIES
from services.segmentation_service import (
    ABSTRACT_MAX_CHARS,
    CONCLUSION_MAX_CHARS,
    INTRODUCTION_MAX_CHARS,
    SectionSegmenter,
    section_segmenter,
)
from state.state_schema import PipelineContext
from utils.sanitization import clean_text, normalize_whitespace

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = (
    "Text generation service failed to initialize. "
    "Check the LLM provider configuration and credentials."
)


class PipelineUnavailableError(Exception):
    """The generation collaborator is missing or lacks required capabilities."""

    def __init__(self, message: str = UNAVAILABLE_MESSAGE):
        super().__init__(message)
        self.user_message = message


# Result fields that count toward confidence, keyed by outcome name
OUTCOME_FIELDS: Dict[str, str] = {
    "summary": "summary",
    "key_findings": "key_findings",
    "methodology": "methodology",
    "research_question": "research_question",
    "research_gaps": "research_gaps",
    "trajectories": "trajectory_suggestions",
}

BASE_OUTCOMES = ("summary", "key_findings", "methodology", "research_gaps")


@dataclass(frozen=True)
class PipelineStep:
    name: str
    agent: object
    outcomes: Tuple[str, ...]


DEFAULT_STEPS: Tuple[PipelineStep, ...] = (
    PipelineStep("summary", paper_summarization_agent, ("summary",)),
    PipelineStep("key_findings", key_findings_agent, ("key_findings",)),
    PipelineStep("methodology", methodology_agent, ("research_question", "methodology")),
    PipelineStep("research_gaps", gap_analysis_agent, ("research_gaps",)),
    PipelineStep("trajectories", trajectory_agent, ("trajectories",)),
)


def compute_confidence(successful: int, applicable: int) -> int:
    """Percentage of applicable outcomes that came back non-empty, half rounded up."""
    if applicable <= 0:
        return 0
    return int(math.floor(successful * 100 / applicable + 0.5))


def applicable_outcomes(sections: SegmentedDocument, capabilities: Capability) -> List[str]:
    outcomes = list(BASE_OUTCOMES)
    if sections.introduction:
        outcomes.append("research_question")
    if (capabilities & Capability.PROMPT) == Capability.PROMPT:
        outcomes.append("trajectories")
    return outcomes


def _override(value: Optional[str], limit: int) -> Optional[str]:
    if value is None:
        return None
    text = normalize_whitespace(value)
    return text[:limit].rstrip() if text else None


class AnalysisPipeline:
    """
    Runs the analysis steps strictly in order against one generation client.
    A failing step is logged and scores zero; only text preparation errors
    abort the run.
    """

    def __init__(
        self,
        steps: Sequence[PipelineStep] = DEFAULT_STEPS,
        segmenter: SectionSegmenter = section_segmenter,
    ):
        self.steps = tuple(steps)
        self.segmenter = segmenter

    def build_context(self, document: RawDocument, client: Optional[GenerationClient]) -> PipelineContext:
        if client is None or not client.has(REQUIRED_CAPABILITIES):
            raise PipelineUnavailableError()

        try:
            content = normalize_whitespace(document.full_text)
            sections = self.segmenter.segment(content)
        except Exception as e:
            logger.error(f"Text preparation failed for {document.url or 'document'}: {e}")
            raise TextPreparationError(f"Failed to prepare document text: {e}") from e

        # Pre-split sections from the extractor replace segmented ones
        overrides = {
            "abstract": _override(document.abstract, ABSTRACT_MAX_CHARS),
            "introduction": _override(document.introduction_text, INTRODUCTION_MAX_CHARS),
            "conclusion": _override(document.conclusion_text, CONCLUSION_MAX_CHARS),
        }
        sections = sections.model_copy(update={k: v for k, v in overrides.items() if v})

        capabilities = client.capabilities
        result = AnalysisResult(
            title=clean_text(document.title) or sections.title or "Untitled Document",
            url=document.url,
            abstract=sections.abstract,
        )

        return PipelineContext(
            document=document,
            sections=sections,
            content=content,
            client=client,
            capabilities=capabilities,
            result=result,
            applicable_steps=applicable_outcomes(sections, capabilities),
        )

    def run(self, document: RawDocument, client: Optional[GenerationClient]) -> AnalysisResult:
        ctx = self.build_context(document, client)
        logger.info(
            f"🚀 Analyzing '{ctx.result.title}' "
            f"({len(ctx.applicable_steps)} applicable steps: {', '.join(ctx.applicable_steps)})"
        )

        for step in self.steps:
            outcomes = [o for o in step.outcomes if o in ctx.applicable_steps]
            if not outcomes:
                logger.info(f"Skipping step '{step.name}' (not applicable)")
                continue

            logger.info(f"🔄 Pipeline step: {step.name}")
            try:
                ctx = step.agent.run(ctx)
            except TextPreparationError:
                raise
            except Exception as e:
                logger.warning(f"Step '{step.name}' failed: {e}")
                for outcome in outcomes:
                    ctx.step_outcomes[outcome] = False
                continue

            for outcome in outcomes:
                ctx.step_outcomes[outcome] = bool(getattr(ctx.result, OUTCOME_FIELDS[outcome]))

        ctx.result.confidence = compute_confidence(ctx.successful_steps, len(ctx.applicable_steps))
        logger.info(
            f"Analysis complete with confidence: {ctx.result.confidence}% "
            f"({ctx.successful_steps}/{len(ctx.applicable_steps)})"
        )
        return ctx.result


analysis_pipeline = AnalysisPipeline()

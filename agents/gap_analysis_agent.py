#agents/gap_analysis_agent.py
import logging
from typing import List, Optional

from services.budget.budget_planner import BudgetClass, prepare_text
from services.budget.chunking import chunk_text
from services.prompts import PROMPT_TEMPLATES
from services.response_parser import is_none_answer, parse_list_items
from state.state_schema import PipelineContext

logger = logging.getLogger(__name__)

GAP_LIMIT = 4


class GapAnalysisAgent:
    """
    Collects research gaps from the conclusion (abstract when there is no
    conclusion), chunk by chunk. Gaps are deduplicated exactly as written and
    kept in discovery order.
    """

    name = "research_gaps"

    def run(self, ctx: PipelineContext) -> PipelineContext:
        if ctx.sections.conclusion:
            source, label = ctx.sections.conclusion, "conclusion"
        elif ctx.sections.abstract:
            source, label = ctx.sections.abstract, "abstract"
        else:
            logger.warning("No conclusion or abstract found. Skipping gap analysis.")
            return ctx

        logger.info(f"🔍 Gap Analysis: scanning {label} for research gaps...")

        gaps: List[str] = []
        seen = set()
        chunks = chunk_text(source)
        failures = 0
        last_error: Optional[Exception] = None

        for index, chunk in enumerate(chunks, 1):
            budgeted = prepare_text(chunk, BudgetClass.CHUNK, ctx.token_counter, label=f"{label}[{index}]")
            prompt = PROMPT_TEMPLATES["gaps_chunk"].format(
                source=label,
                source_upper=label.upper(),
                index=index,
                total=len(chunks),
                chunk=budgeted.text,
            )

            try:
                answer = ctx.client.write(prompt)
            except Exception as e:
                failures += 1
                last_error = e
                logger.warning(f"Gap query for chunk {index}/{len(chunks)} failed: {e}")
                continue

            if is_none_answer(answer):
                continue

            for gap in parse_list_items(answer, limit=GAP_LIMIT, drop_preamble=True):
                if gap not in seen:
                    seen.add(gap)
                    gaps.append(gap)

            if len(gaps) >= GAP_LIMIT:
                break

        if failures == len(chunks) and last_error is not None:
            raise last_error

        ctx.result.research_gaps = gaps[:GAP_LIMIT]

        if ctx.result.research_gaps:
            logger.info(f"✅ Gap Analysis: found {len(ctx.result.research_gaps)} gaps.")
        else:
            logger.info("Gap Analysis: No gaps stated in the source text.")
        return ctx


gap_analysis_agent = GapAnalysisAgent()

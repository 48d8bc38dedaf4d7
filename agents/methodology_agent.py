# agents/methodology_agent.py
import logging
from typing import Dict, Optional

from services.budget.budget_planner import BudgetClass, prepare_text
from services.budget.chunking import chunk_text
from services.prompts import PROMPT_TEMPLATES
from services.response_parser import ChunkAnswer, NOT_FOUND_IN_CHUNK, is_none_answer, parse_chunk_fields
from state.state_schema import PipelineContext

logger = logging.getLogger(__name__)

FIELDS = ("research_question", "methodology")


class MethodologyAgent:
    """
    Research question + methodology from the introduction, one query per
    chunk. A chunk that says NONE only means "not here"; we keep reading
    until both fields are found or the chunks run out.
    """

    name = "methodology"

    def run(self, ctx: PipelineContext) -> PipelineContext:
        if ctx.has_introduction:
            found = self._scan_introduction(ctx)
            ctx.result.research_question = found["research_question"].value if found["research_question"] else ""
            ctx.result.methodology = found["methodology"].value if found["methodology"] else ""
        else:
            ctx.result.methodology = self._from_abstract(ctx) or ""

        logger.info(
            f"Methodology analyzed (methodology={'yes' if ctx.result.methodology else 'no'}, "
            f"question={'yes' if ctx.result.research_question else 'no'})"
        )
        return ctx

    def _scan_introduction(self, ctx: PipelineContext) -> Dict[str, ChunkAnswer]:
        found = {name: NOT_FOUND_IN_CHUNK for name in FIELDS}
        chunks = chunk_text(ctx.sections.introduction)
        failures = 0
        last_error: Optional[Exception] = None

        logger.info(f"🔬 Scanning introduction for question/methodology ({len(chunks)} chunks)...")

        for index, chunk in enumerate(chunks, 1):
            budgeted = prepare_text(chunk, BudgetClass.CHUNK, ctx.token_counter, label=f"introduction[{index}]")
            prompt = PROMPT_TEMPLATES["question_methodology_chunk"].format(
                index=index, total=len(chunks), chunk=budgeted.text
            )

            try:
                answer = ctx.client.write(prompt)
            except Exception as e:
                failures += 1
                last_error = e
                logger.warning(f"Chunk {index}/{len(chunks)} query failed: {e}")
                continue

            parsed = parse_chunk_fields(answer)
            for name in FIELDS:
                if not found[name] and parsed[name]:
                    found[name] = parsed[name]

            if all(found[name] for name in FIELDS):
                logger.info(f"Both fields found after chunk {index}/{len(chunks)}")
                break

        if failures == len(chunks) and last_error is not None:
            raise last_error

        return found

    def _from_abstract(self, ctx: PipelineContext) -> Optional[str]:
        abstract = ctx.sections.abstract
        if not abstract:
            logger.warning("No introduction or abstract. Skipping methodology.")
            return None

        logger.info("🔬 No introduction found. Deriving methodology from abstract...")
        budgeted = prepare_text(abstract, BudgetClass.WRITER, ctx.token_counter, label="abstract")
        answer = ctx.client.write(PROMPT_TEMPLATES["methodology_from_abstract"].format(abstract=budgeted.text))
        if is_none_answer(answer):
            return None
        return answer.strip()


methodology_agent = MethodologyAgent()

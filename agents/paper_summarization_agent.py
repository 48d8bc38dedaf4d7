# agents/paper_summarization_agent.py
import logging

from services.budget.budget_planner import BudgetClass, prepare_text
from state.state_schema import PipelineContext

logger = logging.getLogger(__name__)


class PaperSummarizationAgent:
    name = "summary"

    def run(self, ctx: PipelineContext) -> PipelineContext:
        # Abstract first; whole content only when no abstract was found
        source = ctx.sections.abstract or ctx.content
        label = "abstract" if ctx.sections.abstract else "content"
        if not source:
            logger.warning("No abstract or content to summarize. Skipping summary.")
            return ctx

        logger.info(f"📄 Summarizing paper ({label}, {len(source)} chars)...")
        budgeted = prepare_text(source, BudgetClass.SUMMARIZER, ctx.token_counter, label=label)

        summary = ctx.client.summarize(budgeted.text)
        ctx.result.summary = (summary or "").strip()

        logger.info(f"Summary generated: {ctx.result.summary[:100]}...")
        return ctx


paper_summarization_agent = PaperSummarizationAgent()

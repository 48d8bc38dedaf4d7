# agents/key_findings_agent.py
import logging

from services.budget.budget_planner import BudgetClass, prepare_text
from services.prompts import PROMPT_TEMPLATES
from services.response_parser import parse_list_items
from state.state_schema import PipelineContext

logger = logging.getLogger(__name__)

FINDINGS_LIMIT = 4


class KeyFindingsAgent:
    """
    Findings come from the abstract only. Body sections (related work,
    experiments on baselines) produce findings that are not the paper's own.
    """

    name = "key_findings"

    def run(self, ctx: PipelineContext) -> PipelineContext:
        abstract = ctx.sections.abstract
        if not abstract:
            logger.warning("No abstract available. Skipping key findings.")
            return ctx

        logger.info("🔑 Extracting key findings...")
        budgeted = prepare_text(abstract, BudgetClass.WRITER, ctx.token_counter, label="abstract")
        prompt = PROMPT_TEMPLATES["key_findings"].format(abstract=budgeted.text)

        findings_text = ctx.client.write(prompt)
        ctx.result.key_findings = parse_list_items(findings_text, limit=FINDINGS_LIMIT, drop_preamble=True)

        logger.info(f"Key findings extracted: {len(ctx.result.key_findings)}")
        return ctx


key_findings_agent = KeyFindingsAgent()

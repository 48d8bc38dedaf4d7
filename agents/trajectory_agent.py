#File: agents/trajectory_agent.py
import logging

from services.budget.budget_planner import BudgetClass, render_prompt
from services.budget.context_combiner import combine_sections, render_context
from services.llm_service import Capability
from services.prompts import PROMPT_TEMPLATES
from services.response_parser import parse_list_items
from state.state_schema import PipelineContext

logger = logging.getLogger(__name__)

TRAJECTORY_LIMIT = 5
TRAJECTORY_CONTEXT_BUDGET = 3500


class TrajectoryAgent:
    """
    Suggests follow-up research directions from the conclusion and the gaps
    found earlier in the run. Needs the free-form prompting capability.
    """

    name = "trajectories"

    def run(self, ctx: PipelineContext) -> PipelineContext:
        if not ctx.has(Capability.PROMPT):
            logger.info("⚠️ Skipping trajectory suggestions (reasoning capability not available)")
            return ctx

        logger.info("🧭 Generating research trajectory suggestions...")

        if ctx.sections.conclusion:
            primary = ("Conclusion", ctx.sections.conclusion)
        else:
            primary = ("Abstract", ctx.sections.abstract or ctx.result.summary)

        gaps = "\n".join(f"{i}. {g}" for i, g in enumerate(ctx.result.research_gaps, 1))
        blocks = combine_sections(
            [primary, ("Identified Gaps", gaps)],
            total_budget=TRAJECTORY_CONTEXT_BUDGET,
        )
        if not blocks:
            logger.warning("No context for trajectory suggestions.")
            return ctx

        prompt = render_prompt(
            PROMPT_TEMPLATES["trajectories"],
            {"context": render_context(blocks)},
            BudgetClass.LANGUAGE_MODEL,
            ctx.token_counter,
        )
        text = ctx.client.prompt(prompt)
        ctx.result.trajectory_suggestions = parse_list_items(text, limit=TRAJECTORY_LIMIT, drop_preamble=True)

        logger.info(f"Trajectory suggestions generated: {len(ctx.result.trajectory_suggestions)}")
        return ctx


trajectory_agent = TrajectoryAgent()

# services/budget/context_combiner.py
import logging
from typing import List, Sequence, Tuple, Union

from services.budget.truncation import BudgetedText, truncate_sentences

logger = logging.getLogger(__name__)

MIN_VIABLE_SLICE = 100

SectionInput = Union[BudgetedText, Tuple[str, str]]


def _as_budgeted(section: SectionInput) -> BudgetedText:
    if isinstance(section, BudgetedText):
        return section
    label, text = section
    return BudgetedText(text=text, label=label)


def combine_sections(
    sections: Sequence[SectionInput],
    total_budget: int,
    min_slice: int = MIN_VIABLE_SLICE,
) -> List[BudgetedText]:
    """
    Merge labeled sections in priority order under one shared char budget.

    Sections that do not fit their remaining share are cut at a sentence
    boundary; once less than `min_slice` chars remain nothing else is added.
    Sum of returned text lengths never exceeds total_budget.
    """
    combined: List[BudgetedText] = []
    used = 0

    for raw in sections:
        section = _as_budgeted(raw)
        if not section.text or not section.text.strip():
            continue

        remaining = total_budget - used
        if remaining < min_slice:
            logger.debug(f"Context budget exhausted before '{section.label}' ({remaining} chars left)")
            break

        text = section.text
        if len(text) > remaining:
            text = truncate_sentences(text, remaining, strict=True)

        combined.append(BudgetedText(text=text, label=section.label))
        used += len(text)

    return combined


def render_context(blocks: Sequence[BudgetedText]) -> str:
    """Labels are presentation only and do not count against the budget."""
    parts = []
    for block in blocks:
        if block.label:
            parts.append(f"{block.label}:\n{block.text}")
        else:
            parts.append(block.text)
    return "\n\n".join(parts)

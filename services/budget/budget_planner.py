# services/budget/budget_planner.py
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from services.budget.truncation import BudgetedText, TruncationStrategy, truncate

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 3.5

TokenCounter = Callable[[str], int]


class TextPreparationError(Exception):
    """Raised when text cannot be prepared for a generation call. Fatal for a run."""
    pass


@dataclass(frozen=True)
class BudgetPolicy:
    max_chars: int
    prompt_token_ceiling: int
    overhead_tokens: int
    response_reserve_tokens: int

    @property
    def token_allowance(self) -> int:
        return self.prompt_token_ceiling - self.overhead_tokens - self.response_reserve_tokens

    @property
    def target_length(self) -> int:
        return int(self.token_allowance * CHARS_PER_TOKEN)


@dataclass(frozen=True)
class BudgetDecision:
    truncate: bool
    target_length: int


class BudgetClass:
    SUMMARIZER = "summarizer"
    WRITER = "writer"
    LANGUAGE_MODEL = "language_model"
    CHUNK = "chunk"
    COMPARISON = "comparison"


# Char thresholds are checked first; the token ceiling only matters when a
# live counter is available. target_length = allowance * 3.5 (floored).
BUDGET_POLICIES: Dict[str, BudgetPolicy] = {
    BudgetClass.SUMMARIZER: BudgetPolicy(
        max_chars=4000, prompt_token_ceiling=1280, overhead_tokens=80, response_reserve_tokens=100
    ),
    BudgetClass.WRITER: BudgetPolicy(
        max_chars=3000, prompt_token_ceiling=1024, overhead_tokens=100, response_reserve_tokens=100
    ),
    BudgetClass.LANGUAGE_MODEL: BudgetPolicy(
        max_chars=5000, prompt_token_ceiling=2048, overhead_tokens=400, response_reserve_tokens=256
    ),
    BudgetClass.CHUNK: BudgetPolicy(
        max_chars=2000, prompt_token_ceiling=1024, overhead_tokens=260, response_reserve_tokens=200
    ),
    BudgetClass.COMPARISON: BudgetPolicy(
        max_chars=3500, prompt_token_ceiling=1536, overhead_tokens=350, response_reserve_tokens=200
    ),
}


def get_policy(budget_class: str) -> BudgetPolicy:
    policy = BUDGET_POLICIES.get(budget_class)
    if policy is None:
        raise TextPreparationError(f"Unknown budget class: {budget_class}")
    return policy


class BudgetPlanner:
    """
    Decides whether text must be shortened before a generation call.
    A failing or absent token counter never blocks a call: the char-based
    verdict stands.
    """

    @staticmethod
    def plan(
        text: str,
        budget_class: str,
        token_counter: Optional[TokenCounter] = None,
    ) -> BudgetDecision:
        policy = get_policy(budget_class)
        length = len(text)
        target = min(policy.target_length, policy.max_chars)

        if length > policy.max_chars:
            logger.debug(f"[{budget_class}] {length} chars > {policy.max_chars}, truncating to {target}")
            return BudgetDecision(truncate=True, target_length=target)

        if token_counter is None:
            return BudgetDecision(truncate=False, target_length=length)

        try:
            tokens = int(token_counter(text))
        except Exception as e:
            logger.debug(f"[{budget_class}] Token counter failed ({e}); using char verdict")
            return BudgetDecision(truncate=False, target_length=length)

        if tokens > policy.token_allowance:
            # Dense text: the observed chars/token ratio beats the 3.5 estimate
            observed = (length * policy.token_allowance) // tokens
            target = min(target, observed)
            logger.debug(
                f"[{budget_class}] {tokens} tokens > allowance {policy.token_allowance}, truncating to {target}"
            )
            return BudgetDecision(truncate=True, target_length=target)

        return BudgetDecision(truncate=False, target_length=length)


budget_planner = BudgetPlanner()


def prepare_text(
    text: str,
    budget_class: str,
    token_counter: Optional[TokenCounter] = None,
    label: str = "",
    strategy: TruncationStrategy = TruncationStrategy.SENTENCE_BOUNDARY,
) -> BudgetedText:
    """Plan and apply truncation so the text fits a generation call."""
    if not isinstance(text, str):
        raise TextPreparationError(f"Expected text for '{label or budget_class}', got {type(text).__name__}")

    decision = BudgetPlanner.plan(text, budget_class, token_counter)
    if not decision.truncate:
        return BudgetedText(text=text, label=label)

    shortened = truncate(text, decision.target_length, strategy, strict=True)
    logger.info(f"✂️ {label or budget_class}: {len(text)} -> {len(shortened)} chars ({strategy.value})")
    return BudgetedText(text=shortened, label=label)


def fit_fields(fields: Dict[str, str], budget: int) -> Dict[str, str]:
    """
    Cut field values so their combined length stays within `budget`.
    Fields share the budget evenly in the given order; what a short field
    leaves unused passes on to the fields after it.
    """
    fitted: Dict[str, str] = {}
    remaining = max(budget, 0)
    names = list(fields)
    for index, name in enumerate(names):
        value = fields[name] or ""
        share = remaining // (len(names) - index)
        if len(value) > share:
            value = truncate(value, share, TruncationStrategy.SENTENCE_BOUNDARY, strict=True)
        fitted[name] = value
        remaining -= len(value)
    return fitted


def render_prompt(
    template: str,
    fields: Dict[str, str],
    budget_class: str,
    token_counter: Optional[TokenCounter] = None,
) -> str:
    """
    Format `template` so the whole prompt, fixed template text included,
    stays within the class char ceiling. With a token counter the rendered
    prompt is planned again and the fields shrink to the planned target.
    """
    policy = get_policy(budget_class)
    fixed = len(template.format(**{name: "" for name in fields}))
    if fixed > policy.max_chars:
        raise TextPreparationError(f"Template alone exceeds the {budget_class} budget ({fixed} chars)")

    prompt = template.format(**fit_fields(fields, policy.max_chars - fixed))
    decision = BudgetPlanner.plan(prompt, budget_class, token_counter)
    if decision.truncate:
        shortened = template.format(**fit_fields(fields, decision.target_length - fixed))
        logger.info(f"✂️ {budget_class} prompt: {len(prompt)} -> {len(shortened)} chars")
        prompt = shortened
    return prompt

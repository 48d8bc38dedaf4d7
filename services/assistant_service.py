# services/assistant_service.py
import asyncio
import logging
from typing import Optional

from services.budget.budget_planner import BudgetClass, prepare_text
from services.llm_service import Capability, GenerationClient
from services.prompts import PROMPT_TEMPLATES
from workflow import PipelineUnavailableError

logger = logging.getLogger(__name__)


class AssistantMode:
    SIMPLIFY = "simplify-text"
    EXPLAIN = "explain-text"
    ASK = "ask-question"

    ALL = (SIMPLIFY, EXPLAIN, ASK)


def _token_counter(client: GenerationClient):
    return client.count_prompt_tokens if client.has(Capability.COUNT_TOKENS) else None


def process_assistant_request(
    mode: str,
    text: str,
    question: Optional[str],
    client: Optional[GenerationClient],
) -> str:
    """
    Reading-assistant actions on selected text. Explain and ask prefer the
    free-form prompt capability and fall back to the writer.
    """
    if mode not in AssistantMode.ALL:
        raise ValueError(f"Unknown assistant mode: {mode}")
    if not text or not text.strip():
        raise ValueError("Selected text cannot be empty")
    if mode == AssistantMode.ASK and not (question and question.strip()):
        raise ValueError("A question is required in ask-question mode")
    if client is None or not client.has(Capability.WRITE):
        raise PipelineUnavailableError()

    use_prompt = mode != AssistantMode.SIMPLIFY and client.has(Capability.PROMPT)
    budget_class = BudgetClass.LANGUAGE_MODEL if use_prompt else BudgetClass.WRITER
    passage = prepare_text(text, budget_class, _token_counter(client), label=mode).text

    if mode == AssistantMode.SIMPLIFY:
        prompt = PROMPT_TEMPLATES["assistant_simplify"].format(text=passage)
    elif mode == AssistantMode.EXPLAIN:
        prompt = PROMPT_TEMPLATES["assistant_explain"].format(text=passage)
    else:
        prompt = PROMPT_TEMPLATES["assistant_question"].format(text=passage, question=question.strip())

    logger.info(f"💬 Assistant request: {mode} ({len(passage)} chars, {'prompt' if use_prompt else 'write'})")
    answer = client.prompt(prompt) if use_prompt else client.write(prompt)
    return answer.strip()


async def run_assistant_task(
    mode: str,
    text: str,
    question: Optional[str],
    client: Optional[GenerationClient],
) -> str:
    return await asyncio.to_thread(process_assistant_request, mode, text, question, client)

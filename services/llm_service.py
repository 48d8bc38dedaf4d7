import os
import logging
from enum import Flag, auto
from typing import Optional, Dict, Any

from openai import OpenAI

logger = logging.getLogger(__name__)


class LLMGenerationError(Exception):
    """Raised when the LLM fails to generate a response."""
    pass


class Capability(Flag):
    NONE = 0
    SUMMARIZE = auto()
    WRITE = auto()
    PROMPT = auto()
    COUNT_TOKENS = auto()


REQUIRED_CAPABILITIES = Capability.SUMMARIZE | Capability.WRITE


class GenerationClient:
    """
    Collaborator that turns prompts into text. Subclasses declare what they
    support through `capabilities`; callers branch on the flags instead of
    probing for methods.
    """

    capabilities: Capability = Capability.NONE

    def has(self, capability: Capability) -> bool:
        return (self.capabilities & capability) == capability

    def summarize(self, text: str) -> str:
        raise NotImplementedError

    def write(self, prompt: str) -> str:
        raise NotImplementedError

    def prompt(self, prompt: str) -> str:
        raise NotImplementedError

    def count_prompt_tokens(self, text: str) -> int:
        raise NotImplementedError

    def close(self) -> None:
        pass


SUMMARY_LENGTH_HINTS = {
    "short": "3 bullet points",
    "medium": "5 bullet points",
    "long": "7 bullet points",
}

SUMMARIZER_SYSTEM_PROMPT = (
    "You summarize academic text into key points. Output plain text, one key point per line, "
    "no preamble. Use {length}."
)

WRITER_SYSTEM_PROMPT = (
    "You are a precise academic writer. Write in a formal tone, plain text, "
    "and answer exactly in the format requested."
)

ADVISOR_SYSTEM_PROMPT = """You are an expert research advisor analyzing academic papers. Your role is to provide specific, actionable research suggestions that build upon the work presented. When suggesting research directions:
- Be concrete and specific with methodology suggestions
- Suggest realistic next steps that researchers can actually pursue
- Consider practical constraints like data availability and feasibility
- Identify potential collaborations or interdisciplinary approaches
- Focus on high-impact research directions that advance the field
Keep suggestions clear, actionable, and well-reasoned."""


def generate_response(
    client: OpenAI,
    prompt: str,
    model: str = "gpt-4o-mini",
    temperature: float = 0.7,
    system_prompt: str = "",
) -> str:
    """
    Generates a text response from the LLM.
    Raises:
        LLMGenerationError: If the API call fails.
    """
    try:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
        )
        if not response.choices or not response.choices[0].message.content:
            logger.error("LLM returned empty response or no content")
            raise LLMGenerationError("LLM returned empty response")
        return response.choices[0].message.content

    except LLMGenerationError:
        raise
    except Exception as e:
        logger.error(f"LLM Generation Failed: {e}", exc_info=True)
        raise LLMGenerationError(f"Failed to generate LLM response: {e}") from e


class OpenAIGenerationClient(GenerationClient):
    """
    Chat-completion backed collaborator. One client, three personas:
    key-point summarizer, formal writer, research advisor (free-form prompt).
    Token counting is not exposed, so budgeting stays char-based.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str,
        enable_reasoning: bool = True,
        summary_length: str = "medium",
    ):
        self._client = client
        self.model = model
        self.summary_length = summary_length if summary_length in SUMMARY_LENGTH_HINTS else "medium"
        self.capabilities = Capability.SUMMARIZE | Capability.WRITE
        if enable_reasoning:
            self.capabilities |= Capability.PROMPT

    def summarize(self, text: str) -> str:
        system_prompt = SUMMARIZER_SYSTEM_PROMPT.format(length=SUMMARY_LENGTH_HINTS[self.summary_length])
        return generate_response(self._client, text, model=self.model, temperature=0.3, system_prompt=system_prompt)

    def write(self, prompt: str) -> str:
        return generate_response(self._client, prompt, model=self.model, temperature=0.4, system_prompt=WRITER_SYSTEM_PROMPT)

    def prompt(self, prompt: str) -> str:
        if not self.has(Capability.PROMPT):
            raise LLMGenerationError("Reasoning capability is disabled for this client")
        return generate_response(self._client, prompt, model=self.model, temperature=0.7, system_prompt=ADVISOR_SYSTEM_PROMPT)


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def check_availability(client: Optional[GenerationClient]) -> Dict[str, Any]:
    if client is None:
        return {"available": False, "error": "Generation client is not initialized"}

    return {
        "available": client.has(REQUIRED_CAPABILITIES),
        "summarizer": client.has(Capability.SUMMARIZE),
        "writer": client.has(Capability.WRITE),
        "language_model": client.has(Capability.PROMPT),
        "token_counter": client.has(Capability.COUNT_TOKENS),
    }

# tests/conftest.py
import json
from typing import Callable, List, Optional, Sequence, Tuple, Union

import pytest

from api.models.analysis_models import RawDocument
from services.llm_service import Capability, GenerationClient

ALL_CAPABILITIES = Capability.SUMMARIZE | Capability.WRITE | Capability.PROMPT

Reply = Union[str, Exception, Callable[[str], str]]

STRONG_VERDICT = json.dumps({
    "hasConnection": True,
    "type": "builds_on",
    "strength": 8,
    "description": "Both papers study sparse attention for long documents.",
})

# (marker found in the prompt, reply). First match wins.
DEFAULT_RULES: List[Tuple[str, Reply]] = [
    ("identify and list 2-3 main research contributions", (
        "1. The proposed model reduces inference cost by forty percent.\n"
        "2. Accuracy matches the dense baseline on all benchmarks."
    )),
    ("INTRODUCTION PART", (
        "RESEARCH QUESTION: Can sparse attention match dense attention on long inputs?\n"
        "METHODOLOGY: A block-sparse transformer trained on long-document corpora."
    )),
    ("describe the research methodology", "The authors train a block-sparse transformer and compare it to dense baselines."),
    ("research gaps, limitations", "1. Evaluation on languages other than English is missing."),
    ("suggest 3-4 specific", (
        "Here are some directions:\n"
        "1. Extend the sparse model to multilingual long-document benchmarks.\n"
        "2. Study the effect of block size on retrieval-heavy tasks."
    )),
    ("compare two research papers", STRONG_VERDICT),
    ("share a specific research theme", "Both papers study efficient attention for long documents."),
]


class FakeGenerator(GenerationClient):
    """Scripted generation client. Records every call as (kind, text)."""

    def __init__(
        self,
        rules: Optional[Sequence[Tuple[str, Reply]]] = None,
        capabilities: Capability = ALL_CAPABILITIES,
        summary: Reply = "Sparse attention matches dense attention at lower cost.",
        token_counter: Optional[Callable[[str], int]] = None,
    ):
        self.rules = list(rules or []) + DEFAULT_RULES
        self.capabilities = capabilities
        self.summary = summary
        self._token_counter = token_counter
        if token_counter is not None:
            self.capabilities |= Capability.COUNT_TOKENS
        self.calls: List[Tuple[str, str]] = []

    def _reply(self, reply: Reply, text: str) -> str:
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(text)
        return reply

    def summarize(self, text: str) -> str:
        self.calls.append(("summarize", text))
        return self._reply(self.summary, text)

    def _dispatch(self, kind: str, text: str) -> str:
        self.calls.append((kind, text))
        for marker, reply in self.rules:
            if marker in text:
                return self._reply(reply, text)
        return "NONE"

    def write(self, prompt: str) -> str:
        return self._dispatch("write", prompt)

    def prompt(self, prompt: str) -> str:
        return self._dispatch("prompt", prompt)

    def count_prompt_tokens(self, text: str) -> int:
        return self._token_counter(text)

    def calls_of(self, kind: str) -> List[str]:
        return [text for k, text in self.calls if k == kind]


PAPER_TEXT = (
    "Sparse Attention for Long Documents\n\n"
    "Abstract: We show that block-sparse attention matches dense attention on long inputs. "
    "Our model reduces inference cost substantially.\n\n"
    "1. Introduction\n"
    "Transformers struggle with long documents because attention is quadratic. "
    "We ask whether sparse attention can close the gap.\n\n"
    "2. Conclusion\n"
    "Sparse attention is competitive. Future work should cover multilingual corpora.\n\n"
    "References\n"
    "[1] Vaswani et al. Attention is all you need."
)


@pytest.fixture
def make_client():
    return FakeGenerator


@pytest.fixture
def fake_client():
    return FakeGenerator()


@pytest.fixture
def paper_document():
    return RawDocument(full_text=PAPER_TEXT, url="https://example.org/sparse.pdf")

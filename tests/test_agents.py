# tests/test_agents.py
import pytest

from agents.gap_analysis_agent import GAP_LIMIT, gap_analysis_agent
from agents.key_findings_agent import key_findings_agent
from agents.methodology_agent import methodology_agent
from agents.paper_summarization_agent import paper_summarization_agent
from agents.trajectory_agent import trajectory_agent
from api.models.analysis_models import AnalysisResult, RawDocument, SegmentedDocument
from services.budget.budget_planner import BudgetClass, get_policy
from services.llm_service import Capability, LLMGenerationError
from state.state_schema import PipelineContext


def make_ctx(client, abstract="", introduction="", conclusion="", content="", gaps=None):
    sections = SegmentedDocument(title="T", abstract=abstract, introduction=introduction, conclusion=conclusion)
    return PipelineContext(
        document=RawDocument(full_text=content),
        sections=sections,
        content=content,
        client=client,
        capabilities=client.capabilities,
        result=AnalysisResult(title="T", research_gaps=list(gaps or [])),
    )


def test_summary_prefers_abstract(fake_client):
    ctx = paper_summarization_agent.run(make_ctx(fake_client, abstract="The abstract.", content="Whole paper."))

    assert fake_client.calls_of("summarize") == ["The abstract."]
    assert ctx.result.summary


def test_summary_falls_back_to_content(fake_client):
    paper_summarization_agent.run(make_ctx(fake_client, content="Whole paper."))
    assert fake_client.calls_of("summarize") == ["Whole paper."]


def test_key_findings_never_use_content(fake_client):
    ctx = key_findings_agent.run(make_ctx(fake_client, content="Body text with results."))

    assert ctx.result.key_findings == []
    assert fake_client.calls == []


def test_key_findings_from_abstract(fake_client):
    ctx = key_findings_agent.run(make_ctx(fake_client, abstract="We show things."))

    assert len(ctx.result.key_findings) == 2
    assert "We show things." in fake_client.calls_of("write")[0]


def test_methodology_keeps_reading_after_none_chunk(make_client):
    replies = iter([
        "RESEARCH QUESTION: NONE\nMETHODOLOGY: NONE",
        "RESEARCH QUESTION: Does X hold for long inputs?\nMETHODOLOGY: NONE",
        "RESEARCH QUESTION: NONE\nMETHODOLOGY: Controlled experiments on five corpora.",
        "RESEARCH QUESTION: A later question.\nMETHODOLOGY: A later method.",
    ])
    client = make_client(rules=[("INTRODUCTION PART", lambda _: next(replies))])
    introduction = "word " * 1600  # four chunks

    ctx = methodology_agent.run(make_ctx(client, introduction=introduction))

    assert ctx.result.research_question == "Does X hold for long inputs?"
    assert ctx.result.methodology == "Controlled experiments on five corpora."
    # early exit once both fields were found
    assert len(client.calls_of("write")) == 3


def test_methodology_without_introduction_uses_abstract(fake_client):
    ctx = methodology_agent.run(make_ctx(fake_client, abstract="We train a model."))

    assert ctx.result.methodology.startswith("The authors train")
    assert ctx.result.research_question == ""
    assert len(fake_client.calls_of("write")) == 1


def test_methodology_failing_chunk_is_skipped(make_client):
    replies = iter([
        LLMGenerationError("timeout"),
        "RESEARCH QUESTION: Q that is answered here?\nMETHODOLOGY: A survey of methods.",
    ])

    def reply(_):
        value = next(replies)
        if isinstance(value, Exception):
            raise value
        return value

    client = make_client(rules=[("INTRODUCTION PART", reply)])
    ctx = methodology_agent.run(make_ctx(client, introduction="word " * 800))

    assert ctx.result.methodology == "A survey of methods."


def test_methodology_all_chunks_failing_raises(make_client):
    client = make_client(rules=[("INTRODUCTION PART", LLMGenerationError("down"))])
    with pytest.raises(LLMGenerationError):
        methodology_agent.run(make_ctx(client, introduction="Short intro."))


def test_gaps_deduplicated_in_discovery_order(make_client):
    replies = iter([
        "1. Gap about multilingual evaluation.\n2. Gap about energy measurements.",
        "NONE",
        "1. Gap about energy measurements.\n2. gap about energy measurements.\n3. Gap about robustness testing.",
        "1. Gap about user studies in practice.\n2. A gap that exceeds the final cap.",
    ])
    client = make_client(rules=[("research gaps, limitations", lambda _: next(replies))])
    conclusion = "word " * 1600

    ctx = gap_analysis_agent.run(make_ctx(client, conclusion=conclusion))

    assert ctx.result.research_gaps == [
        "Gap about multilingual evaluation.",
        "Gap about energy measurements.",
        "gap about energy measurements.",
        "Gap about robustness testing.",
    ]
    assert len(ctx.result.research_gaps) == GAP_LIMIT


def test_gaps_fall_back_to_abstract(fake_client):
    gap_analysis_agent.run(make_ctx(fake_client, abstract="Our abstract text."))
    assert "ABSTRACT PART 1 OF 1" in fake_client.calls_of("write")[0]


def test_trajectories_require_prompt_capability(make_client):
    client = make_client(capabilities=Capability.SUMMARIZE | Capability.WRITE)
    ctx = trajectory_agent.run(make_ctx(client, conclusion="Conclusion text."))

    assert ctx.result.trajectory_suggestions == []
    assert client.calls == []


def test_trajectories_filter_preamble(fake_client):
    ctx = trajectory_agent.run(
        make_ctx(fake_client, conclusion="Sparse attention works.", gaps=["Multilingual data is missing."])
    )

    assert ctx.result.trajectory_suggestions == [
        "Extend the sparse model to multilingual long-document benchmarks.",
        "Study the effect of block size on retrieval-heavy tasks.",
    ]
    prompt = fake_client.calls_of("prompt")[0]
    assert "Conclusion:\nSparse attention works." in prompt
    assert "1. Multilingual data is missing." in prompt


def test_trajectory_prompt_respects_token_counter(make_client):
    counted = []

    def one_token_per_char(text):
        counted.append(text)
        return len(text)

    client = make_client(token_counter=one_token_per_char)
    conclusion = " ".join(f"Conclusion sentence number {i} holds." for i in range(200))
    trajectory_agent.run(make_ctx(client, conclusion=conclusion, gaps=["Multilingual data is missing."]))

    allowance = get_policy(BudgetClass.LANGUAGE_MODEL).token_allowance
    assert counted
    assert len(client.calls_of("prompt")[0]) <= allowance

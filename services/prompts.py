#File: services/prompts.py
from typing import Dict

PROMPT_TEMPLATES: Dict[str, str] = {
    "key_findings": """Based on this research paper abstract, identify and list 2-3 main research contributions or key findings. Be specific and concise. Format as a numbered list, one finding per line, no introduction.

ABSTRACT:
{abstract}""",

    "question_methodology_chunk": """You are reading one part of a research paper's introduction.

From THIS PART ONLY, extract:
- the research question or problem the authors address
- the methodology, techniques or approach they use

If this part does not state one of them, answer NONE for it. Do not guess.

Answer in exactly this format:
RESEARCH QUESTION: <one sentence or NONE>
METHODOLOGY: <2-3 sentences or NONE>

INTRODUCTION PART {index} OF {total}:
{chunk}""",

    "methodology_from_abstract": """Based on this research paper abstract, describe the research methodology, techniques, or approaches used in 2-3 sentences. Plain text, no introduction.

ABSTRACT:
{abstract}""",

    "gaps_chunk": """You are reading one part of a research paper's {source}.

List the research gaps, limitations, or open problems the authors mention as needing further investigation, one per line as a numbered list.
Only include what THIS PART states. If it states none, answer NONE.

{source_upper} PART {index} OF {total}:
{chunk}""",

    "trajectories": """Based on this research paper and its identified gaps, suggest 3-4 specific, actionable research directions that could build upon this work.

{context}

Provide concrete, feasible next steps that researchers could pursue. Each suggestion should be specific enough to guide actual research planning. Format as a numbered list with no introduction.""",

    "connection_structured": """You compare two research papers and decide whether they are meaningfully connected.

PAPER A
Title: {title_a}
Key findings:
{findings_a}
Research gaps:
{gaps_a}
Abstract: {abstract_a}

PAPER B
Title: {title_b}
Key findings:
{findings_b}
Research gaps:
{gaps_b}
Abstract: {abstract_b}

Be strict. Shared broad field is NOT a connection. A connection means one paper builds on, contradicts, addresses a gap of, or shares a specific method or dataset with the other.

Respond with ONLY a JSON object:
{{"hasConnection": true or false, "type": "builds_on" | "contradicts" | "addresses_gap" | "shared_method" | "shared_dataset" | "none", "strength": 1-10, "description": "one sentence, max 200 characters"}}""",

    "connection_theme": """Do these two research paper summaries share a specific research theme?

SUMMARY A ({title_a}):
{summary_a}

SUMMARY B ({title_b}):
{summary_b}

If they do not, answer exactly: No significant connection.
If they do, answer with one sentence (max 200 characters) naming the shared theme.""",

    "assistant_simplify": """Rewrite the following text in simple, clear language for a non-expert reader. Keep every fact, drop the jargon.

TEXT:
{text}""",

    "assistant_explain": """Explain the following passage from a research paper. Describe what it means, define the technical terms it uses, and say why it matters.

PASSAGE:
{text}""",

    "assistant_question": """Answer the question using only the passage below. If the passage does not contain the answer, say so.

PASSAGE:
{text}

QUESTION:
{question}""",
}

# File: state/state_schema.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from api.models.analysis_models import AnalysisResult, RawDocument, SegmentedDocument
from services.budget.budget_planner import TokenCounter
from services.llm_service import Capability, GenerationClient


@dataclass
class PipelineContext:
    """
    Everything one analysis run needs, built once per run and handed to each
    step. Steps read sources from here and write outputs into `result`.
    """

    document: RawDocument
    sections: SegmentedDocument
    content: str
    client: GenerationClient
    capabilities: Capability
    result: AnalysisResult

    # step name -> produced non-empty output
    step_outcomes: Dict[str, bool] = field(default_factory=dict)
    applicable_steps: List[str] = field(default_factory=list)

    def has(self, capability: Capability) -> bool:
        return (self.capabilities & capability) == capability

    @property
    def token_counter(self) -> Optional[TokenCounter]:
        if self.has(Capability.COUNT_TOKENS):
            return self.client.count_prompt_tokens
        return None

    @property
    def has_introduction(self) -> bool:
        return bool(self.sections.introduction)

    @property
    def successful_steps(self) -> int:
        return sum(1 for ok in self.step_outcomes.values() if ok)

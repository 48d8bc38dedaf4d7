# api/models/analysis_models.py
import threading
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _format_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T12:00:00.123Z"""
    return _format_timestamp(datetime.now(timezone.utc))


_last_key: Optional[datetime] = None
_key_lock = threading.Lock()


def unique_timestamp() -> str:
    """
    utc_timestamp() for identity keys: never repeats within the process.
    A key minted in the same millisecond as the previous one (or behind it
    after a clock step) is moved 1 ms past it.
    """
    global _last_key
    with _key_lock:
        now = datetime.now(timezone.utc)
        now = now.replace(microsecond=now.microsecond // 1000 * 1000)
        if _last_key is not None and now <= _last_key:
            now = _last_key + timedelta(milliseconds=1)
        _last_key = now
        return _format_timestamp(now)


class CamelModel(BaseModel):
    # Stored/wire form uses camelCase keys; Python code uses snake_case
    model_config = ConfigDict(populate_by_name=True)


class RawDocument(CamelModel):
    full_text: str = Field("", alias="fullText", description="Extracted document text")
    url: str = Field("", description="Source URL of the document")
    title: Optional[str] = Field(None, description="Title if the extractor already knows it")

    # Pre-split sections from a structure-aware extractor bypass segmentation
    abstract: Optional[str] = None
    introduction_text: Optional[str] = Field(None, alias="introductionText")
    conclusion_text: Optional[str] = Field(None, alias="conclusionText")


class SegmentedDocument(BaseModel):
    title: str = ""
    abstract: str = ""
    introduction: str = ""
    conclusion: str = ""


class Connection(CamelModel):
    paper_id: str = Field(..., alias="paperId", description="Timestamp of the connected result")
    paper_title: str = Field("", alias="paperTitle")
    type: Optional[str] = None
    strength: Optional[int] = Field(None, ge=1, le=10)
    description: str = Field("", max_length=200)
    detected_at: str = Field(default_factory=utc_timestamp, alias="detectedAt")


class AnalysisResult(CamelModel):
    title: str = ""
    url: str = ""
    timestamp: str = Field(default_factory=unique_timestamp, description="Unique identity key")
    abstract: str = ""
    summary: str = ""
    key_findings: List[str] = Field(default_factory=list, alias="keyFindings")
    methodology: str = ""
    research_question: str = Field("", alias="researchQuestion")
    research_gaps: List[str] = Field(default_factory=list, alias="researchGaps")
    trajectory_suggestions: List[str] = Field(default_factory=list, alias="trajectorySuggestions")
    confidence: int = Field(0, ge=0, le=100)
    connections: List[Connection] = Field(default_factory=list)

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class AnalysisResponse(BaseModel):
    status: str
    data: AnalysisResult


class AvailabilityResponse(BaseModel):
    available: bool
    summarizer: bool = False
    writer: bool = False
    language_model: bool = False
    token_counter: bool = False
    error: Optional[str] = None


class LibraryResponse(BaseModel):
    status: str
    count: int
    data: List[AnalysisResult]


class LibraryStats(BaseModel):
    total_papers: int
    total_connections: int
    connected_papers: int
    isolated_papers: int
    average_confidence: float
    latest_title: Optional[str] = None

# api/models/assistant_models.py
from typing import Optional

from pydantic import BaseModel, Field


class AssistantRequest(BaseModel):
    mode: str = Field(..., description="simplify-text | explain-text | ask-question")
    text: str = Field(..., description="Selected passage")
    question: Optional[str] = None


class AssistantResponse(BaseModel):
    status: str
    mode: str
    result: str

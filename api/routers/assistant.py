# File: api/routers/assistant.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from api.dependencies.services import get_generation_client
from api.models.assistant_models import AssistantRequest, AssistantResponse
from services.assistant_service import run_assistant_task
from services.llm_service import GenerationClient
from workflow import PipelineUnavailableError
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=AssistantResponse)
async def assist(
    payload: AssistantRequest,
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> AssistantResponse:
    try:
        result = await run_assistant_task(payload.mode, payload.text, payload.question, client)
        return AssistantResponse(status="success", mode=payload.mode, result=result)

    except PipelineUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.user_message)

    except ValueError as e:
        logger.warning(f"Validation error in assistant: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception:
        logger.error("Unexpected error in assistant", exc_info=True)
        raise HTTPException(status_code=500, detail="An internal error occurred")

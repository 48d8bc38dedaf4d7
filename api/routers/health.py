# File: api/routers/health.py
from typing import Optional

from fastapi import APIRouter, Depends
from api.dependencies.services import get_generation_client
from services.llm_service import GenerationClient, REQUIRED_CAPABILITIES


router = APIRouter()


@router.get("/health")
async def health_check(client: Optional[GenerationClient] = Depends(get_generation_client)):
    return {
        "status": "ok",
        "generation": "ready" if client is not None and client.has(REQUIRED_CAPABILITIES) else "unavailable",
    }

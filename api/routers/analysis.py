# File: api/routers/analysis.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from api.dependencies.services import get_generation_client, get_result_store
from api.models.analysis_models import AnalysisResponse, AvailabilityResponse, RawDocument
from clients.pdf_client import MAX_PDF_BYTES, extract_pdf_text
from services.analysis_service import run_analysis_task
from services.budget.budget_planner import TextPreparationError
from services.llm_service import GenerationClient, check_availability
from services.result_store import ResultStore
from workflow import PipelineUnavailableError
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 8192


async def _run(document: RawDocument, client, store, detect_connections) -> AnalysisResponse:
    try:
        if not document.full_text or not document.full_text.strip():
            raise ValueError("Document text cannot be empty")

        data = await run_analysis_task(document, client, store, detect_connections)
        return AnalysisResponse(status="success", data=data)

    except PipelineUnavailableError as e:
        logger.warning(f"Analysis unavailable: {e}")
        raise HTTPException(status_code=503, detail=e.user_message)

    except ValueError as e:
        logger.warning(f"Validation error in run_analysis: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except TextPreparationError:
        logger.error("Text preparation failed in run_analysis", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to prepare document text")

    except Exception:
        logger.error("Unexpected error in run_analysis", exc_info=True)
        raise HTTPException(status_code=500, detail="An internal error occurred")


@router.get("/availability", response_model=AvailabilityResponse)
async def availability(client: Optional[GenerationClient] = Depends(get_generation_client)):
    return AvailabilityResponse(**check_availability(client))


@router.post("/run", response_model=AnalysisResponse)
async def run_analysis(
    payload: RawDocument,
    detect_connections: Optional[bool] = None,
    client: Optional[GenerationClient] = Depends(get_generation_client),
    store: ResultStore = Depends(get_result_store),
) -> AnalysisResponse:
    return await _run(payload, client, store, detect_connections)


@router.post("/upload", response_model=AnalysisResponse)
async def upload_and_analyze(
    file: UploadFile = File(...),
    url: str = Form(""),
    detect_connections: Optional[bool] = Form(None),
    client: Optional[GenerationClient] = Depends(get_generation_client),
    store: ResultStore = Depends(get_result_store),
) -> AnalysisResponse:
    """Analyze an uploaded PDF (limit 10MB)."""
    if not (file.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    # Check size before reading entire file into memory
    content = bytearray()
    while True:
        chunk = await file.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > MAX_PDF_BYTES:
            raise HTTPException(status_code=413, detail="File too large (limit 10MB)")

    try:
        text, title = await extract_pdf_text(bytes(content))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error(f"PDF extraction failed for {file.filename}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error during upload")

    document = RawDocument(full_text=text, url=url or file.filename, title=title)
    return await _run(document, client, store, detect_connections)

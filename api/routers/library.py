# File: api/routers/library.py
from fastapi import APIRouter, Depends, HTTPException, Query
from api.dependencies.services import get_result_store
from api.models.analysis_models import AnalysisResult, LibraryResponse, LibraryStats
from services.library_service import ConnectionFilter, SortOrder, library_stats, query_library
from services.result_store import ResultStore
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=LibraryResponse)
async def list_analyses(
    q: str = Query("", description="Search title, summary, methodology, findings, gaps"),
    connection_filter: str = Query(ConnectionFilter.ALL),
    sort: str = Query(SortOrder.RECENT),
    store: ResultStore = Depends(get_result_store),
) -> LibraryResponse:
    try:
        results = query_library(store.load(), q, connection_filter, sort)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return LibraryResponse(status="success", count=len(results), data=results)


@router.get("/stats", response_model=LibraryStats)
async def stats(store: ResultStore = Depends(get_result_store)) -> LibraryStats:
    return LibraryStats(**library_stats(store.load()))


@router.get("/latest", response_model=AnalysisResult)
async def latest(store: ResultStore = Depends(get_result_store)) -> AnalysisResult:
    result = store.latest()
    if result is None:
        raise HTTPException(status_code=404, detail="No analyses stored yet")
    return result


@router.get("/{timestamp}", response_model=AnalysisResult)
async def get_analysis(timestamp: str, store: ResultStore = Depends(get_result_store)) -> AnalysisResult:
    result = store.get(timestamp)
    if result is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return result


@router.delete("")
async def clear_library(store: ResultStore = Depends(get_result_store)):
    store.clear()
    logger.info("🗑️ Library cleared")
    return {"status": "success"}

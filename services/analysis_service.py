# File: services/analysis_service.py

import asyncio
import logging
import os
from typing import Optional

from api.models.analysis_models import AnalysisResult, RawDocument
from services.connection_service import ComparisonMode, ConnectionGraph
from services.llm_service import GenerationClient, env_flag
from services.result_store import ResultStore
from workflow import AnalysisPipeline, PipelineUnavailableError, analysis_pipeline

logger = logging.getLogger(__name__)

CONNECTION_DETECTION = env_flag("CONNECTION_DETECTION", True)
CONNECTION_MODE = os.getenv("CONNECTION_MODE", ComparisonMode.STRUCTURED.value)


def resolve_connection_mode(value: Optional[str] = None) -> ComparisonMode:
    raw = (value or CONNECTION_MODE or "").strip().lower()
    try:
        return ComparisonMode(raw)
    except ValueError:
        logger.warning(f"Unknown CONNECTION_MODE '{raw}', using structured")
        return ComparisonMode.STRUCTURED


def analyze_document(
    document: RawDocument,
    client: Optional[GenerationClient],
    store: ResultStore,
    detect_connections: Optional[bool] = None,
    connection_mode: Optional[str] = None,
    pipeline: AnalysisPipeline = analysis_pipeline,
) -> AnalysisResult:
    """
    PIPELINE:
    1. Availability check on the generation client
    2. Step pipeline (summary, findings, methodology, gaps, trajectories)
    3. Connection detection against the most recent stored analyses
    4. Head insert into the store (capacity trimmed), priors with mirrored edges
    """
    if client is None:
        raise PipelineUnavailableError()

    result = pipeline.run(document, client)

    if detect_connections is None:
        detect_connections = CONNECTION_DETECTION

    priors = store.load()
    if detect_connections and priors:
        graph = ConnectionGraph(client, mode=resolve_connection_mode(connection_mode))
        try:
            graph.link(result, priors)
        except Exception as e:
            # Connections are optional output
            logger.warning(f"Connection detection failed: {e}")

    store.insert(result, existing=priors)
    logger.info(f"💾 Stored analysis '{result.title}' ({len(result.connections)} connections)")
    return result


async def run_analysis_task(
    document: RawDocument,
    client: Optional[GenerationClient],
    store: ResultStore,
    detect_connections: Optional[bool] = None,
    connection_mode: Optional[str] = None,
) -> AnalysisResult:
    # Generation calls block; keep them off the event loop
    return await asyncio.to_thread(
        analyze_document,
        document,
        client,
        store,
        detect_connections,
        connection_mode,
    )

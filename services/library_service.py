# services/library_service.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

import networkx as nx

from api.models.analysis_models import AnalysisResult

logger = logging.getLogger(__name__)


class ConnectionFilter:
    ALL = "all"
    CONNECTED = "connected"
    ISOLATED = "isolated"


class SortOrder:
    RECENT = "recent"
    OLDEST = "oldest"
    CONNECTIONS = "connections"


def search(results: Sequence[AnalysisResult], query: str) -> List[AnalysisResult]:
    """Case-insensitive substring match over title, summary, methodology, findings and gaps."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(results)

    def matches(r: AnalysisResult) -> bool:
        return (
            needle in r.title.lower()
            or needle in r.summary.lower()
            or needle in r.methodology.lower()
            or any(needle in f.lower() for f in r.key_findings)
            or any(needle in g.lower() for g in r.research_gaps)
        )

    return [r for r in results if matches(r)]


def filter_by_connections(results: Sequence[AnalysisResult], mode: str = ConnectionFilter.ALL) -> List[AnalysisResult]:
    if mode == ConnectionFilter.CONNECTED:
        return [r for r in results if r.connections]
    if mode == ConnectionFilter.ISOLATED:
        return [r for r in results if not r.connections]
    if mode != ConnectionFilter.ALL:
        raise ValueError(f"Unknown connection filter: {mode}")
    return list(results)


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_results(results: Sequence[AnalysisResult], order: str = SortOrder.RECENT) -> List[AnalysisResult]:
    if order == SortOrder.RECENT:
        return sorted(results, key=lambda r: _parse_timestamp(r.timestamp), reverse=True)
    if order == SortOrder.OLDEST:
        return sorted(results, key=lambda r: _parse_timestamp(r.timestamp))
    if order == SortOrder.CONNECTIONS:
        # stable: ties keep store order
        return sorted(results, key=lambda r: len(r.connections), reverse=True)
    raise ValueError(f"Unknown sort order: {order}")


def query_library(
    results: Sequence[AnalysisResult],
    query: str = "",
    connection_filter: str = ConnectionFilter.ALL,
    order: str = SortOrder.RECENT,
) -> List[AnalysisResult]:
    return sort_results(filter_by_connections(search(results, query), connection_filter), order)


def build_connection_graph(results: Sequence[AnalysisResult]) -> nx.Graph:
    """
    Undirected graph keyed by result timestamp. A mirrored pair of
    connections collapses into one edge.
    """
    G = nx.Graph()
    for r in results:
        G.add_node(r.timestamp, title=r.title)
    for r in results:
        for c in r.connections:
            if c.paper_id not in G:
                # Peer was evicted from the store; keep the edge
                G.add_node(c.paper_id, title=c.paper_title)
            G.add_edge(r.timestamp, c.paper_id, type=c.type, strength=c.strength)
    return G


def library_stats(results: Sequence[AnalysisResult]) -> Dict[str, Any]:
    G = build_connection_graph(results)
    connected = sum(1 for r in results if r.connections)
    confidences = [r.confidence for r in results]

    return {
        "total_papers": len(results),
        "total_connections": G.number_of_edges(),
        "connected_papers": connected,
        "isolated_papers": len(results) - connected,
        "average_confidence": round(sum(confidences) / len(confidences), 1) if confidences else 0.0,
        "latest_title": results[0].title if results else None,
    }

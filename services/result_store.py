# File: services/result_store.py
import logging
from typing import List, Optional

from pydantic import ValidationError

from api.models.analysis_models import AnalysisResult
from services.storage_service import KeyValueStore

logger = logging.getLogger(__name__)

STORE_KEY = "analyses"
STORE_CAPACITY = 50


class ResultStore:
    """
    Saved analyses, newest first, capped at STORE_CAPACITY.

    Every mutation is a load -> change -> save sequence with no locking, so
    a single writer is assumed.
    """

    def __init__(self, backend: KeyValueStore, key: str = STORE_KEY, capacity: int = STORE_CAPACITY):
        self.backend = backend
        self.key = key
        self.capacity = capacity

    def load(self) -> List[AnalysisResult]:
        results = []
        for record in self.backend.get(self.key):
            try:
                results.append(AnalysisResult.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping malformed stored analysis: {e.error_count()} errors")
        return results

    def save(self, results: List[AnalysisResult]) -> None:
        trimmed = results[: self.capacity]
        if len(results) > self.capacity:
            logger.info(f"🗑️ Evicting {len(results) - self.capacity} oldest analyses")
        self.backend.set(self.key, [r.to_record() for r in trimmed])

    def insert(self, result: AnalysisResult, existing: Optional[List[AnalysisResult]] = None) -> List[AnalysisResult]:
        """
        Put `result` at the head and persist. `existing` lets a caller that
        already loaded (and maybe mutated) the list save those changes too.
        """
        results = self.load() if existing is None else list(existing)
        results = [r for r in results if r.timestamp != result.timestamp]
        results.insert(0, result)
        self.save(results)
        return results[: self.capacity]

    def get(self, timestamp: str) -> Optional[AnalysisResult]:
        for result in self.load():
            if result.timestamp == timestamp:
                return result
        return None

    def latest(self) -> Optional[AnalysisResult]:
        results = self.load()
        return results[0] if results else None

    def clear(self) -> None:
        self.backend.set(self.key, [])

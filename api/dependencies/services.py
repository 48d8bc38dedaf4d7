# File: api/dependencies/services.py
import logging
import threading
from typing import Optional

from services.llm_factory import LLMFactory
from services.llm_service import GenerationClient
from services.result_store import ResultStore
from services.storage_service import SqlKeyValueStore

logger = logging.getLogger(__name__)

_generation_client: Optional[GenerationClient] = None
_client_lock = threading.Lock()


def get_generation_client() -> Optional[GenerationClient]:
    """
    Lazily built generation client. None when the provider cannot be
    initialized; routes turn that into a 503.
    """
    global _generation_client

    if _generation_client is None:
        with _client_lock:
            if _generation_client is None:
                try:
                    _generation_client = LLMFactory.create_generation_client()
                except ValueError as e:
                    logger.error(f"❌ Generation client unavailable: {e}")
                    return None

    return _generation_client


def get_result_store() -> ResultStore:
    return ResultStore(SqlKeyValueStore())

# File: services/storage_service.py
import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from database.db import SessionLocal
from database.models.store_model import StoredValue

logger = logging.getLogger(__name__)


class KeyValueStore:
    """get(key) -> list, set(key, list). Missing keys read as an empty list."""

    def get(self, key: str) -> List[Any]:
        raise NotImplementedError

    def set(self, key: str, value: List[Any]) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, List[Any]]] = None):
        self._data: Dict[str, List[Any]] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> List[Any]:
        # Callers get copies; only set() mutates
        return copy.deepcopy(self._data.get(key, []))

    def set(self, key: str, value: List[Any]) -> None:
        self._data[key] = copy.deepcopy(list(value))


class SqlKeyValueStore(KeyValueStore):
    """One `stored_values` row per key, the list kept in a JSON column."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    def _get_db(self) -> Session:
        return self._session_factory()

    def get(self, key: str) -> List[Any]:
        db = self._get_db()
        try:
            row = db.get(StoredValue, key)
            if not row or not isinstance(row.value, list):
                return []
            return copy.deepcopy(row.value)
        finally:
            db.close()

    def set(self, key: str, value: List[Any]) -> None:
        db = self._get_db()
        try:
            row = db.get(StoredValue, key)
            if row is None:
                db.add(StoredValue(key=key, value=list(value)))
            else:
                row.value = list(value)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Failed to persist store key '{key}'.")
            raise
        finally:
            db.close()

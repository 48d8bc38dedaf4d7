# tests/test_result_store.py
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.models.analysis_models import AnalysisResult, Connection, unique_timestamp
from database.db import init_db
from services.result_store import STORE_CAPACITY, ResultStore
from services.storage_service import InMemoryKeyValueStore, SqlKeyValueStore


def make_result(i):
    return AnalysisResult(title=f"Paper {i}", timestamp=f"2024-05-01T12:{i // 60:02d}:{i % 60:02d}.000Z")


def sqlite_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    return SqlKeyValueStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


class ResultStoreContract:
    """Shared behaviour for every key-value backend."""

    def make_backend(self):
        raise NotImplementedError

    def setUp(self):
        self.store = ResultStore(self.make_backend())

    def test_empty_store(self):
        self.assertEqual(self.store.load(), [])
        self.assertIsNone(self.store.latest())

    def test_insert_is_newest_first(self):
        self.store.insert(make_result(1))
        self.store.insert(make_result(2))

        self.assertEqual([r.title for r in self.store.load()], ["Paper 2", "Paper 1"])
        self.assertEqual(self.store.latest().title, "Paper 2")

    def test_capacity_evicts_oldest(self):
        for i in range(STORE_CAPACITY):
            self.store.insert(make_result(i))
        self.assertEqual(len(self.store.load()), STORE_CAPACITY)

        self.store.insert(make_result(STORE_CAPACITY))
        results = self.store.load()

        self.assertEqual(len(results), STORE_CAPACITY)
        self.assertNotIn("Paper 0", [r.title for r in results])
        self.assertEqual(results[0].title, f"Paper {STORE_CAPACITY}")

    def test_get_by_timestamp(self):
        result = make_result(7)
        self.store.insert(result)

        self.assertEqual(self.store.get(result.timestamp).title, "Paper 7")
        self.assertIsNone(self.store.get("missing"))

    def test_mutated_priors_are_persisted(self):
        self.store.insert(make_result(1))
        priors = self.store.load()
        priors[0].connections.append(Connection(paper_id="x", paper_title="X", description="d"))

        self.store.insert(make_result(2), existing=priors)

        stored_prior = self.store.load()[1]
        self.assertEqual(stored_prior.connections[0].paper_id, "x")

    def test_records_use_wire_keys(self):
        self.store.insert(make_result(1))
        record = self.store.backend.get("analyses")[0]

        self.assertIn("keyFindings", record)
        self.assertIn("researchGaps", record)

    def test_clear(self):
        self.store.insert(make_result(1))
        self.store.clear()
        self.assertEqual(self.store.load(), [])


class TestInMemoryResultStore(ResultStoreContract, unittest.TestCase):
    def make_backend(self):
        return InMemoryKeyValueStore()


class TestSqlResultStore(ResultStoreContract, unittest.TestCase):
    def make_backend(self):
        return sqlite_store()


def test_malformed_records_are_skipped():
    backend = InMemoryKeyValueStore({"analyses": [{"confidence": "not a number"}, make_result(1).to_record()]})
    assert [r.title for r in ResultStore(backend).load()] == ["Paper 1"]


def test_in_memory_store_returns_copies():
    backend = InMemoryKeyValueStore()
    backend.set("k", [{"a": 1}])
    backend.get("k")[0]["a"] = 2
    assert backend.get("k") == [{"a": 1}]


def test_minted_keys_never_repeat():
    keys = [unique_timestamp() for _ in range(500)]

    assert len(set(keys)) == len(keys)
    assert keys == sorted(keys)


def test_back_to_back_results_are_both_kept():
    store = ResultStore(InMemoryKeyValueStore())
    first, second = AnalysisResult(title="First"), AnalysisResult(title="Second")

    store.insert(first)
    store.insert(second)

    assert [r.title for r in store.load()] == ["Second", "First"]

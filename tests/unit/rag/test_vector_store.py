"""
Unit tests for the vector stores.

Tests for:
- SQLite store schema lifecycle (initialize, overwrite, persisted settings)
- put / query / list_all round trips
- Deterministic ordering and tie-breaking
- In-memory store parity
"""

import sqlite3
import threading

import pytest

from rag.contracts.retrieval_contracts import VectorRecord
from rag.core.exceptions import ConfigurationError, DimensionMismatchError, StorageError
from rag.core.utils import to_float32
from rag.retrieval.search import EUCLIDEAN
from rag.storage import (
    InMemoryVectorStore,
    SqliteVectorStore,
    create_vector_store,
    format_records,
)


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path):
    """Fixture providing each store engine, initialized with dimension 4."""
    if request.param == "sqlite":
        return SqliteVectorStore(tmp_path / "vectors.db", dimension=4, auto_init=True)
    return InMemoryVectorStore(dimension=4, auto_init=True)


class TestStoreBehaviour:
    """Behaviour shared by every store engine."""

    def test_put_then_query_same_embedding(self, store):
        """Test a stored embedding is its own nearest neighbor at distance ~0."""
        store.put("far away", [0.0, 1.0, 0.0, 0.0])
        record_id = store.put("The cat sat.", [0.12, 0.34, 0.56, 0.78])
        store.put("elsewhere", [1.0, 0.0, 0.0, 0.0])

        results = store.query([0.12, 0.34, 0.56, 0.78], k=3)

        assert results[0].id == record_id
        assert results[0].text == "The cat sat."
        assert results[0].distance == pytest.approx(0.0, abs=1e-9)

    def test_ids_monotonic(self, store):
        """Test ids increase with each put."""
        ids = [store.put(f"text {i}", [1.0, 0.0, 0.0, float(i)]) for i in range(3)]

        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_list_all_ascending_id(self, store):
        """Test list_all returns every record in id order."""
        for i in range(3):
            store.put(f"chunk number {i}", [1.0, float(i), 0.0, 0.0])

        records = store.list_all()

        assert [r.id for r in records] == sorted(r.id for r in records)
        assert [r.text for r in records] == ["chunk number 0", "chunk number 1", "chunk number 2"]
        assert all(r.title == "chunk nu" for r in records)
        assert store.count() == 3

    def test_ties_broken_by_id(self, store):
        """Test identical embeddings come back in ascending id order."""
        ids = [store.put(f"dup {i}", [0.5, 0.5, 0.5, 0.5]) for i in range(4)]

        results = store.query([0.5, 0.5, 0.5, 0.5], k=4)

        assert [r.id for r in results] == ids

    def test_query_limited_to_k(self, store):
        """Test at most k results are returned."""
        for i in range(5):
            store.put(f"t{i}", [1.0, float(i), 0.0, 0.0])

        assert len(store.query([1.0, 0.0, 0.0, 0.0], k=2)) == 2

    def test_query_empty_store(self, store):
        """Test an empty store returns no results."""
        assert store.query([1.0, 0.0, 0.0, 0.0], k=3) == []

    def test_query_invalid_k(self, store):
        """Test non-positive k raises error."""
        with pytest.raises(ConfigurationError):
            store.query([1.0, 0.0, 0.0, 0.0], k=0)

    def test_put_dimension_mismatch(self, store):
        """Test embeddings of another dimension are rejected, not truncated."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            store.put("text", [1.0, 2.0, 3.0])

        assert exc_info.value.expected == 4
        assert exc_info.value.actual == 3
        assert store.count() == 0

    def test_query_dimension_mismatch(self, store):
        """Test queries of another dimension are rejected."""
        with pytest.raises(DimensionMismatchError):
            store.query([1.0, 2.0, 3.0, 4.0, 5.0], k=1)

    def test_reset_clears_records(self, store):
        """Test reset removes every record."""
        store.put("text", [1.0, 0.0, 0.0, 0.0])

        store.reset()

        assert store.count() == 0
        assert store.list_all() == []

    def test_initialize_without_overwrite_keeps_data(self, store):
        """Test re-initializing without overwrite is a no-op."""
        store.put("keep me", [1.0, 0.0, 0.0, 0.0])

        store.initialize()

        assert [r.text for r in store.list_all()] == ["keep me"]

    def test_embeddings_stored_as_float32(self, store):
        """Test stored embeddings carry float32 precision."""
        store.put("text", [0.1, 0.2, 0.3, 0.4])

        record = store.list_all()[0]

        assert record.embedding == to_float32([0.1, 0.2, 0.3, 0.4])
        assert record.embedding == pytest.approx((0.1, 0.2, 0.3, 0.4), abs=1e-6)

    def test_put_outside_float32_range(self, store):
        """Test finite values too large for float32 raise StorageError."""
        with pytest.raises(StorageError, match="Cannot encode embedding"):
            store.put("huge", [1e39, 1.0, 0.0, 0.0])

        assert store.count() == 0

    def test_query_outside_float32_range(self, store):
        """Test an out-of-range query vector raises StorageError."""
        store.put("text", [1.0, 0.0, 0.0, 0.0])

        with pytest.raises(StorageError, match="Cannot encode embedding"):
            store.query([1e39, 1.0, 0.0, 0.0], k=1)


class TestSqliteVectorStore:
    """Tests specific to the SQLite engine."""

    def test_ranked_scenario_euclidean(self, db_path):
        """Test ids 1-5 at [0.1]*4 .. [0.5]*4 rank 3, 2, 4 for query [0.3]*4."""
        store = SqliteVectorStore(db_path, dimension=4, distance_metric=EUCLIDEAN, auto_init=True)
        for value in (0.1, 0.2, 0.3, 0.4, 0.5):
            store.put(f"value {value}", [value] * 4)

        results = store.query([0.3] * 4, k=3)

        assert [r.id for r in results] == [3, 2, 4]
        assert results[0].distance == 0.0

    def test_uninitialized_missing_file(self, db_path):
        """Test operations on a never-initialized store raise StorageError."""
        store = SqliteVectorStore(db_path, dimension=4)

        with pytest.raises(StorageError, match="not initialized"):
            store.put("text", [1.0, 0.0, 0.0, 0.0])

        with pytest.raises(StorageError, match="not initialized"):
            store.query([1.0, 0.0, 0.0, 0.0], k=1)

        with pytest.raises(StorageError, match="not initialized"):
            store.list_all()

        assert not db_path.exists()

    def test_uninitialized_empty_database(self, db_path):
        """Test a database file without the schema is uninitialized."""
        conn = sqlite3.connect(str(db_path))
        conn.execute("CREATE TABLE unrelated (x INTEGER)")
        conn.commit()
        conn.close()
        store = SqliteVectorStore(db_path, dimension=4)

        with pytest.raises(StorageError, match="no schema"):
            store.count()

    def test_persists_across_instances(self, db_path):
        """Test records survive reopening the database."""
        first = SqliteVectorStore(db_path, dimension=4, auto_init=True)
        record_id = first.put("persisted", [1.0, 0.0, 0.0, 0.0])
        first.close()

        second = SqliteVectorStore(db_path, dimension=4)
        records = second.list_all()

        assert [(r.id, r.text) for r in records] == [(record_id, "persisted")]

    def test_dimension_change_requires_overwrite(self, db_path):
        """Test reopening with another dimension fails until overwrite."""
        SqliteVectorStore(db_path, dimension=4, auto_init=True).put("x", [1.0, 0.0, 0.0, 0.0])

        bigger = SqliteVectorStore(db_path, dimension=8)
        with pytest.raises(DimensionMismatchError):
            bigger.initialize()
        with pytest.raises(DimensionMismatchError):
            bigger.list_all()

        bigger.initialize(overwrite=True)
        assert bigger.count() == 0
        bigger.put("y", [0.0] * 7 + [1.0])
        assert bigger.list_all()[0].dimension == 8

    def test_metric_change_requires_overwrite(self, db_path):
        """Test reopening with another distance metric fails until overwrite."""
        SqliteVectorStore(db_path, dimension=4, auto_init=True)

        l2 = SqliteVectorStore(db_path, dimension=4, distance_metric=EUCLIDEAN)
        with pytest.raises(ConfigurationError, match="distance metric"):
            l2.initialize()

        l2.initialize(overwrite=True)
        assert l2.count() == 0

    def test_overwrite_destroys_records(self, sqlite_store):
        """Test initialize(overwrite=True) starts from an empty store."""
        sqlite_store.put("old", [1.0, 0.0, 0.0, 0.0])

        sqlite_store.initialize(overwrite=True)
        new_id = sqlite_store.put("new", [1.0, 0.0, 0.0, 0.0])

        assert [r.text for r in sqlite_store.list_all()] == ["new"]
        assert new_id == 1

    def test_non_finite_embedding_rejected(self, sqlite_store):
        """Test NaN values cannot be stored."""
        with pytest.raises(StorageError, match="Cannot encode embedding"):
            sqlite_store.put("bad", [float("nan"), 0.0, 0.0, 0.0])

    def test_invalid_construction(self, db_path):
        """Test invalid dimension or metric fail at construction."""
        with pytest.raises(ConfigurationError):
            SqliteVectorStore(db_path, dimension=0)

        with pytest.raises(ConfigurationError):
            SqliteVectorStore(db_path, dimension=4, distance_metric="manhattan")

    def test_concurrent_writes(self, sqlite_store):
        """Test parallel puts all land with distinct ids."""
        ids = []
        lock = threading.Lock()

        def writer(n):
            record_id = sqlite_store.put(f"thread {n}", [1.0, float(n), 0.0, 0.0])
            with lock:
                ids.append(record_id)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(ids) == list(range(1, 9))
        assert sqlite_store.count() == 8


class TestInMemoryVectorStore:
    """Tests specific to the in-memory engine."""

    def test_uninitialized(self):
        """Test operations before initialize raise StorageError."""
        store = InMemoryVectorStore(dimension=4)

        with pytest.raises(StorageError):
            store.put("text", [1.0, 0.0, 0.0, 0.0])

        with pytest.raises(StorageError):
            store.list_all()


class TestCreateVectorStore:
    """Tests for the create_vector_store factory."""

    def test_sqlite_backend(self, db_path):
        store = create_vector_store("sqlite", db_path=db_path, dimension=4)

        assert isinstance(store, SqliteVectorStore)
        assert store.dimension == 4

    def test_memory_backend(self):
        store = create_vector_store("memory", dimension=4, distance_metric=EUCLIDEAN)

        assert isinstance(store, InMemoryVectorStore)
        assert store.distance_metric == EUCLIDEAN

    def test_sqlite_requires_path(self):
        with pytest.raises(ConfigurationError, match="db_path is required"):
            create_vector_store("sqlite")

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError, match="Unknown vector store backend"):
            create_vector_store("faiss")


class TestFormatRecords:
    """Tests for format_records."""

    def test_one_line_per_record(self):
        records = [
            VectorRecord(id=1, title="The cat", text="The cat sat.", embedding=(1.0, 0.0)),
            VectorRecord(id=2, title="A long t", text="A long text " * 10, embedding=(0.0, 1.0)),
        ]

        lines = format_records(records, max_text_length=20).splitlines()

        assert len(lines) == 2
        assert lines[0].startswith("1    - The cat ")
        assert "The cat sat." in lines[0]
        assert "dim=2" in lines[0]
        assert "A long text A lon..." in lines[1]

    def test_empty(self):
        assert format_records([]) == ""

"""
SQLite-backed vector store.

Embeddings are stored as little-endian float32 blobs next to their chunk text,
and nearest-neighbor search ranks every stored record in Python. The store
dimension and distance metric are written to a `store_meta` table when the
schema is created and checked on every later open.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Union

from ..contracts.retrieval_contracts import RetrievalResult, VectorRecord
from ..core.exceptions import ConfigurationError, DimensionMismatchError, StorageError
from ..core.utils import decode_vector, derive_title, encode_vector
from ..retrieval.search import COSINE, get_distance_function, rank_records
from .base import VectorStore


logger = logging.getLogger(__name__)


SCHEMA_VERSION = "1"

# WAL and SHM sidecars are removed along with the database on overwrite
SIDECAR_SUFFIXES = ("-wal", "-shm", "-journal")


class SqliteVectorStore(VectorStore):
    """
    File-backed vector store on SQLite.

    Every operation opens its own connection and closes it when done, so one
    store instance can be shared between threads. Writes are serialized with a
    lock; reads run concurrently under WAL journaling.

    Example:
        >>> store = SqliteVectorStore("data/vectors.db", dimension=768)
        >>> store.initialize()
        >>> record_id = store.put("The cat sat.", embedding)
        >>> results = store.query(embedding, k=3)
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        dimension: int = 768,
        distance_metric: str = COSINE,
        auto_init: bool = False,
    ):
        """
        Initialize the SQLite vector store.

        Args:
            db_path: Path to the SQLite database file
            dimension: Embedding dimension of every stored vector
            distance_metric: 'cosine' or 'euclidean'
            auto_init: Whether to create the schema immediately

        Raises:
            ConfigurationError: If the dimension or metric is invalid
        """
        if dimension <= 0:
            raise ConfigurationError("dimension must be greater than 0")
        get_distance_function(distance_metric)

        super().__init__(dimension, distance_metric)
        self.db_path = Path(db_path)
        self._write_lock = threading.Lock()

        if auto_init:
            self.initialize()

    @contextmanager
    def _connect(self, create: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Open a scoped connection, committing on success.

        Args:
            create: Whether a missing database file may be created

        Raises:
            StorageError: If the database is missing or a SQLite call fails
        """
        if not create and not self.db_path.exists():
            raise StorageError(
                f"Vector store is not initialized: {self.db_path} does not exist"
            )

        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30)
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open vector store {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"SQLite error in vector store {self.db_path}: {e}")
            raise StorageError(f"Vector store operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _read_meta(self, conn: sqlite3.Connection) -> Dict[str, str]:
        """Read store_meta, or an empty dict if the schema was never created."""
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'store_meta'"
        ).fetchone()
        if row is None:
            return {}

        rows = conn.execute("SELECT key, value FROM store_meta").fetchall()
        return {r["key"]: r["value"] for r in rows}

    def _check_meta(self, meta: Dict[str, str]) -> None:
        """
        Compare persisted settings with this store's configuration.

        Raises:
            StorageError: If the schema has not been created
            DimensionMismatchError: If the persisted dimension differs
            ConfigurationError: If the persisted distance metric differs
        """
        if not meta:
            raise StorageError(
                f"Vector store is not initialized: {self.db_path} has no schema"
            )

        stored_dimension = int(meta["dimension"])
        if stored_dimension != self.dimension:
            raise DimensionMismatchError(
                stored_dimension,
                self.dimension,
                f"Vector store {self.db_path} was created with dimension "
                f"{stored_dimension}, configured {self.dimension}; "
                f"reinitialize with overwrite to change it",
            )

        stored_metric = meta["distance_metric"]
        if stored_metric != self.distance_metric:
            raise ConfigurationError(
                f"Vector store {self.db_path} was created with distance metric "
                f"'{stored_metric}', configured '{self.distance_metric}'; "
                f"reinitialize with overwrite to change it"
            )

    def _remove_files(self) -> None:
        """Delete the database file and its sidecars."""
        paths = [self.db_path] + [
            self.db_path.with_name(self.db_path.name + suffix) for suffix in SIDECAR_SUFFIXES
        ]
        try:
            for path in paths:
                path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove vector store {self.db_path}: {e}") from e

        logger.info(f"Removed existing vector store: {self.db_path}")

    def initialize(self, overwrite: bool = False) -> None:
        """
        Create the schema, optionally destroying the existing database first.

        Without overwrite, an existing schema is left untouched and its
        persisted settings must match this store's.

        Args:
            overwrite: Whether to delete the existing database

        Raises:
            StorageError: If the database cannot be created
            DimensionMismatchError: If an existing schema has another dimension
            ConfigurationError: If an existing schema has another metric
        """
        with self._write_lock:
            if overwrite:
                self._remove_files()

            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(f"Failed to create directory for {self.db_path}: {e}") from e

            with self._connect(create=True) as conn:
                conn.execute("PRAGMA journal_mode=WAL")

                meta = self._read_meta(conn)
                if meta:
                    self._check_meta(meta)
                    logger.debug(f"Vector store already initialized: {self.db_path}")
                    return

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS vectors (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        text TEXT NOT NULL,
                        embedding BLOB NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS store_meta (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)

                conn.executemany(
                    "INSERT INTO store_meta (key, value) VALUES (?, ?)",
                    [
                        ("dimension", str(self.dimension)),
                        ("distance_metric", self.distance_metric),
                        ("schema_version", SCHEMA_VERSION),
                    ],
                )

        logger.info(
            f"Initialized vector store {self.db_path} "
            f"(dimension={self.dimension}, metric={self.distance_metric})"
        )

    def _encode(self, embedding: Sequence[float]) -> bytes:
        self.check_dimension(embedding)
        try:
            return encode_vector(embedding)
        except ValueError as e:
            raise StorageError(f"Cannot encode embedding: {e}") from e

    def put(self, text: str, embedding: Sequence[float]) -> int:
        """
        Store a chunk and its embedding.

        Returns:
            ID of the new record

        Raises:
            DimensionMismatchError: If the embedding dimension differs
            StorageError: If the store is uninitialized or the write fails
        """
        blob = self._encode(embedding)

        with self._write_lock, self._connect() as conn:
            self._check_meta(self._read_meta(conn))
            cursor = conn.execute(
                "INSERT INTO vectors (title, text, embedding) VALUES (?, ?, ?)",
                (derive_title(text), text, blob),
            )
            record_id = cursor.lastrowid

        logger.debug(f"Stored vector record {record_id} ({len(text)} chars)")
        return record_id

    def query(self, embedding: Sequence[float], k: int) -> List[RetrievalResult]:
        """
        Find the k records nearest to an embedding.

        The query vector is reduced to float32 first so a stored copy of the
        same vector is at distance 0.

        Raises:
            ConfigurationError: If k <= 0
            DimensionMismatchError: If the embedding dimension differs
            StorageError: If the store is uninitialized or the read fails
        """
        if k <= 0:
            raise ConfigurationError("k must be greater than 0")

        query_vector = decode_vector(self._encode(embedding))
        records = self.list_all()
        results = rank_records(query_vector, records, k, self.distance_metric)

        logger.debug(f"Query over {len(records)} records returned {len(results)} results")
        return results

    def list_all(self) -> List[VectorRecord]:
        """
        Get every record in ascending id order.

        Raises:
            StorageError: If the store is uninitialized or a record is corrupt
        """
        with self._connect() as conn:
            self._check_meta(self._read_meta(conn))
            rows = conn.execute(
                "SELECT id, title, text, embedding FROM vectors ORDER BY id"
            ).fetchall()

        records = []
        for row in rows:
            try:
                embedding = decode_vector(row["embedding"])
            except ValueError as e:
                raise StorageError(f"Corrupt embedding for record {row['id']}: {e}") from e

            records.append(VectorRecord(
                id=row["id"],
                title=row["title"],
                text=row["text"],
                embedding=embedding,
            ))

        return records

    def count(self) -> int:
        """Get the number of stored records."""
        with self._connect() as conn:
            self._check_meta(self._read_meta(conn))
            row = conn.execute("SELECT COUNT(*) AS n FROM vectors").fetchone()
        return row["n"]

    def close(self) -> None:
        """Connections are per operation; nothing stays open."""
        logger.debug(f"Closed vector store: {self.db_path}")

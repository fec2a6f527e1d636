"""
In-process vector store.

Holds records in a list for tests and short-lived sessions. Nothing is
persisted; embeddings are kept at float32 precision so rankings match the
SQLite store.
"""

import logging
import threading
from typing import List, Sequence

from ..contracts.retrieval_contracts import RetrievalResult, VectorRecord
from ..core.exceptions import ConfigurationError, StorageError
from ..core.utils import derive_title, to_float32
from ..retrieval.search import COSINE, get_distance_function, rank_records
from .base import VectorStore


logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStore):
    """Vector store backed by a Python list."""

    def __init__(self, dimension: int = 768, distance_metric: str = COSINE, auto_init: bool = False):
        if dimension <= 0:
            raise ConfigurationError("dimension must be greater than 0")
        get_distance_function(distance_metric)

        super().__init__(dimension, distance_metric)
        self._records: List[VectorRecord] = []
        self._next_id = 1
        self._initialized = False
        self._lock = threading.Lock()

        if auto_init:
            self.initialize()

    def initialize(self, overwrite: bool = False) -> None:
        with self._lock:
            if overwrite or not self._initialized:
                self._records = []
                self._next_id = 1
                self._initialized = True
        logger.debug(f"Initialized in-memory vector store (overwrite={overwrite})")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StorageError("Vector store is not initialized")

    def _to_vector(self, embedding: Sequence[float]):
        self.check_dimension(embedding)
        try:
            return to_float32(embedding)
        except ValueError as e:
            raise StorageError(f"Cannot encode embedding: {e}") from e

    def put(self, text: str, embedding: Sequence[float]) -> int:
        vector = self._to_vector(embedding)

        with self._lock:
            self._require_initialized()
            record = VectorRecord(
                id=self._next_id,
                title=derive_title(text),
                text=text,
                embedding=vector,
            )
            self._records.append(record)
            self._next_id += 1

        return record.id

    def query(self, embedding: Sequence[float], k: int) -> List[RetrievalResult]:
        if k <= 0:
            raise ConfigurationError("k must be greater than 0")

        vector = self._to_vector(embedding)
        return rank_records(vector, self.list_all(), k, self.distance_metric)

    def list_all(self) -> List[VectorRecord]:
        with self._lock:
            self._require_initialized()
            return list(self._records)

    def count(self) -> int:
        with self._lock:
            self._require_initialized()
            return len(self._records)

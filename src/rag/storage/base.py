"""
Vector store interface for persisting and searching embedded chunks.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..contracts.retrieval_contracts import RetrievalResult, VectorRecord
from ..core.exceptions import DimensionMismatchError


class VectorStore(ABC):
    """
    Abstract base class for vector stores.

    A vector store holds (text, embedding) records of one fixed dimension and
    answers nearest-neighbor queries with one fixed distance metric. Both are
    set when the store is initialized and only change through a full reset.
    """

    def __init__(self, dimension: int, distance_metric: str):
        self.dimension = dimension
        self.distance_metric = distance_metric

    def check_dimension(self, embedding: Sequence[float]) -> None:
        """
        Reject embeddings whose dimension differs from the store's.

        Raises:
            DimensionMismatchError: On a mismatch
        """
        if len(embedding) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(embedding))

    @abstractmethod
    def initialize(self, overwrite: bool = False) -> None:
        """
        Create the store schema.

        Args:
            overwrite: If True, destroy existing state first. If False,
                existing data is kept and creation is a no-op.
        """
        pass

    def reset(self) -> None:
        """Destroy all records and recreate an empty schema."""
        self.initialize(overwrite=True)

    @abstractmethod
    def put(self, text: str, embedding: Sequence[float]) -> int:
        """
        Store a chunk and its embedding.

        Args:
            text: Chunk text
            embedding: Chunk embedding

        Returns:
            ID of the new record
        """
        pass

    @abstractmethod
    def query(self, embedding: Sequence[float], k: int) -> List[RetrievalResult]:
        """
        Find the k records nearest to an embedding.

        Args:
            embedding: Query embedding
            k: Maximum number of results

        Returns:
            Results ordered ascending by distance, ties by ascending id
        """
        pass

    @abstractmethod
    def list_all(self) -> List[VectorRecord]:
        """
        Get every record.

        Returns:
            Records ordered by ascending id
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Get the number of stored records."""
        pass

    def close(self) -> None:
        """Release store resources."""
        pass

    def __enter__(self) -> "VectorStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def format_records(records: Sequence[VectorRecord], max_text_length: int = 40) -> str:
    """
    Render records as one diagnostic line each.

    Long texts are cut to `max_text_length` characters, ending in "...".
    """
    lines = []
    for record in records:
        text = record.text.replace("\n", " ")
        if len(text) > max_text_length:
            text = text[:max_text_length - 3] + "..."
        lines.append(f"{record.id:<4d} - {record.title:<8s} | {text:<{max_text_length}s} | dim={record.dimension}")
    return "\n".join(lines)

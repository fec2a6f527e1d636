"""
Retrieval Contracts - data models for RAG (Retrieval Augmented Generation).

These models define the structure for chunks, persisted vector records,
retrieval results and the policies that bound chunking and context assembly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


EmbeddingVector = Tuple[float, ...]

CONTEXT_SEPARATOR = "\n\n---\n\n"
NO_CONTEXT_PLACEHOLDER = "no relevant context found"
TRUNCATION_MARKER = "..."


@dataclass(frozen=True)
class ChunkingPolicy:
    """
    Policy for segmenting text into sentence chunks.

    Attributes:
        chunk_size: Number of sentences per chunk
        overlap: Number of sentences shared by consecutive chunks
    """
    chunk_size: int = 16
    overlap: int = 4

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "chunk_size": self.chunk_size,
            "overlap": self.overlap,
        }


@dataclass(frozen=True)
class ContextPolicy:
    """
    Policy bounding the context handed to the chat provider.

    Attributes:
        max_items: Maximum number of retrieval results to include
        max_chars_per_item: Characters kept per result before truncation
        separator: String placed between items
        placeholder: Returned when there is nothing to include
    """
    max_items: int = 3
    max_chars_per_item: int = 1000
    separator: str = CONTEXT_SEPARATOR
    placeholder: str = NO_CONTEXT_PLACEHOLDER

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "max_items": self.max_items,
            "max_chars_per_item": self.max_chars_per_item,
        }


@dataclass(frozen=True)
class Chunk:
    """
    An immutable slice of source text made of one or more sentences.

    Attributes:
        text: Chunk content (sentences joined by a single space)
        source_offset: 0-based sequence index of the chunk within its source
    """
    text: str
    source_offset: int

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "source_offset": self.source_offset}


@dataclass(frozen=True)
class VectorRecord:
    """
    A persisted chunk with its embedding.

    Attributes:
        id: Monotonic integer assigned by the store
        title: Short label derived from the text
        text: Chunk content
        embedding: Embedding vector
    """
    id: int
    title: str
    text: str
    embedding: EmbeddingVector

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "text": self.text,
            "dimension": self.dimension,
        }


@dataclass(frozen=True)
class RetrievalResult:
    """
    A single nearest-neighbor hit for a query.

    Attributes:
        id: ID of the matched record
        text: Record content
        embedding: Record embedding
        distance: Distance to the query (lower is more similar)
    """
    id: int
    text: str
    embedding: EmbeddingVector
    distance: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "distance": self.distance,
        }


@dataclass
class IngestReport:
    """
    Outcome of a successful ingest.

    Attributes:
        chunks_stored: Number of chunks embedded and stored
        record_ids: IDs assigned to the stored chunks, in chunk order
    """
    chunks_stored: int = 0
    record_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunks_stored": self.chunks_stored,
            "record_ids": list(self.record_ids),
        }


__all__ = [
    "EmbeddingVector",
    "CONTEXT_SEPARATOR",
    "NO_CONTEXT_PLACEHOLDER",
    "TRUNCATION_MARKER",
    "ChunkingPolicy",
    "ContextPolicy",
    "Chunk",
    "VectorRecord",
    "RetrievalResult",
    "IngestReport",
]

"""
Contracts subpackage - data models shared across the RAG pipeline.
"""

from .retrieval_contracts import (
    EmbeddingVector,
    CONTEXT_SEPARATOR,
    NO_CONTEXT_PLACEHOLDER,
    TRUNCATION_MARKER,
    ChunkingPolicy,
    ContextPolicy,
    Chunk,
    VectorRecord,
    RetrievalResult,
    IngestReport,
)

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

"""
Custom exceptions for the RAG module.
"""

from typing import Optional


class RagError(Exception):
    """Base exception for all RAG module errors."""
    pass


class ConfigurationError(RagError):
    """
    Error in RAG configuration or call parameters.

    Raised when:
    - Chunk size or overlap are out of range
    - Top-K or context limits are not positive
    - Configuration values are missing or invalid
    """
    pass


class ProviderError(RagError):
    """
    Error communicating with an embedding or chat provider.

    Raised when:
    - Provider is unreachable
    - Provider returns a non-2xx response
    - Response body cannot be decoded
    - Provider returns an empty embedding or answer
    """

    def __init__(self, message: str, provider: str = None, status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class StorageError(RagError):
    """
    Error persisting or reading vector records.

    Raised when:
    - The store schema has not been initialized
    - The database file cannot be opened or written
    - A stored record cannot be decoded
    """
    pass


class DimensionMismatchError(RagError):
    """
    Embedding dimension disagrees with the store schema.

    Vectors of a different dimension are never truncated or padded.
    """

    def __init__(self, expected: int, actual: int, message: Optional[str] = None):
        super().__init__(
            message or f"Embedding dimension mismatch: store expects {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class IngestError(RagError):
    """
    Ingestion stopped on a chunk.

    Attributes:
        chunk_index: 1-based position of the failing chunk
        total_chunks: Number of chunks produced by segmentation
        stored_count: Chunks stored before the failure (they are kept)
        error: The underlying error (also set as __cause__)
    """

    def __init__(
        self,
        message: str,
        chunk_index: int,
        total_chunks: int,
        stored_count: int,
        error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        self.stored_count = stored_count
        self.error = error

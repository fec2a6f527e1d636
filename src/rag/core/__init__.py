"""
Core subpackage for the RAG module.

Contains exceptions, logging utilities and shared helpers.
"""

from .exceptions import (
    RagError,
    ConfigurationError,
    ProviderError,
    StorageError,
    DimensionMismatchError,
    IngestError,
)

__all__ = [
    "RagError",
    "ConfigurationError",
    "ProviderError",
    "StorageError",
    "DimensionMismatchError",
    "IngestError",
]

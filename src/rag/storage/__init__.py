"""
Storage subpackage - vector store engines.

Supports:
- SQLite (file-backed, default)
- In-memory (process-local, nothing persisted)
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..core.exceptions import ConfigurationError
from ..retrieval.search import COSINE
from .base import VectorStore, format_records
from .memory_store import InMemoryVectorStore
from .sqlite_store import SqliteVectorStore


logger = logging.getLogger(__name__)


SQLITE_BACKEND = "sqlite"
MEMORY_BACKEND = "memory"


def create_vector_store(
    backend: str = SQLITE_BACKEND,
    db_path: Optional[Union[str, Path]] = None,
    dimension: int = 768,
    distance_metric: str = COSINE,
    auto_init: bool = False,
) -> VectorStore:
    """
    Factory function to create a vector store.

    Args:
        backend: 'sqlite' or 'memory'
        db_path: Database file (required for sqlite)
        dimension: Embedding dimension
        distance_metric: 'cosine' or 'euclidean'
        auto_init: Whether to create the schema immediately

    Returns:
        VectorStore instance

    Raises:
        ConfigurationError: If the backend is unknown or db_path is missing
    """
    backend = (backend or SQLITE_BACKEND).lower()

    if backend == SQLITE_BACKEND:
        if not db_path:
            raise ConfigurationError("db_path is required for the sqlite backend")
        logger.debug(f"Creating SQLite vector store: {db_path}")
        return SqliteVectorStore(
            db_path,
            dimension=dimension,
            distance_metric=distance_metric,
            auto_init=auto_init,
        )

    if backend == MEMORY_BACKEND:
        logger.debug("Creating in-memory vector store")
        return InMemoryVectorStore(
            dimension=dimension,
            distance_metric=distance_metric,
            auto_init=auto_init,
        )

    raise ConfigurationError(
        f"Unknown vector store backend '{backend}'. "
        f"Supported: {SQLITE_BACKEND}, {MEMORY_BACKEND}"
    )


__all__ = [
    "VectorStore",
    "SqliteVectorStore",
    "InMemoryVectorStore",
    "create_vector_store",
    "format_records",
    "SQLITE_BACKEND",
    "MEMORY_BACKEND",
]

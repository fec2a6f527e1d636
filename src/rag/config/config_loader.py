"""
Configuration loader for the RAG pipeline.

Settings come from three layers, later layers winning:
1. Dataclass defaults
2. An optional YAML file (flat mapping of setting name to value)
3. Environment variables
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..contracts.retrieval_contracts import ChunkingPolicy, ContextPolicy
from ..core.exceptions import ConfigurationError
from ..providers.ollama_client import (
    DEFAULT_BASE_URL,
    DEFAULT_CHAT_MODEL,
    DEFAULT_EMBED_MODEL,
    OllamaClient,
)
from ..retrieval.chunker import validate_chunking
from ..retrieval.orchestrator import RetrievalOrchestrator
from ..retrieval.search import COSINE, DISTANCE_METRICS
from ..storage import MEMORY_BACKEND, SQLITE_BACKEND, VectorStore, create_vector_store


logger = logging.getLogger(__name__)


# Environment variable -> (setting name, converter)
ENV_OVERRIDES = {
    "OLLAMA_BASE_URL": ("ollama_base_url", str),
    "OLLAMA_CHAT_MODEL": ("chat_model", str),
    "OLLAMA_EMBED_MODEL": ("embed_model", str),
    "RAG_EMBEDDING_DIMENSIONS": ("embedding_dimensions", int),
    "RAG_DISTANCE_METRIC": ("distance_metric", str),
    "RAG_STORE_BACKEND": ("store_backend", str),
    "RAG_DB_PATH": ("db_path", str),
    "RAG_CHUNK_SIZE": ("chunk_size", int),
    "RAG_CHUNK_OVERLAP": ("chunk_overlap", int),
    "RAG_TOP_K": ("top_k", int),
    "RAG_TIMEOUT_SECONDS": ("timeout_seconds", float),
}


@dataclass
class RagConfig:
    """Configuration for the RAG pipeline."""
    ollama_base_url: str = DEFAULT_BASE_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    embed_model: str = DEFAULT_EMBED_MODEL
    embedding_dimensions: int = 768
    distance_metric: str = COSINE
    store_backend: str = SQLITE_BACKEND
    db_path: str = "data/vectors.db"
    chunk_size: int = 16
    chunk_overlap: int = 4
    top_k: int = 3
    context_max_items: int = 3
    context_max_chars_per_item: int = 1000
    document_prefix: str = ""
    query_prefix: str = ""
    timeout_seconds: Optional[float] = None

    @classmethod
    def from_env(cls) -> "RagConfig":
        """Create config from defaults and environment variables."""
        config = cls()
        config.apply_env_overrides()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RagConfig":
        """
        Create config from a mapping of setting names.

        Raises:
            ConfigurationError: If the mapping has unknown keys
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides in place.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        for env_var, (name, convert) in ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is None or raw == "":
                continue
            try:
                setattr(self, name, convert(raw))
            except ValueError:
                raise ConfigurationError(
                    f"Invalid value for {env_var}: {raw!r}"
                ) from None
            logger.debug(f"Applied env override {env_var} -> {name}")

    def validate(self) -> None:
        """
        Check every setting.

        Raises:
            ConfigurationError: On the first invalid setting
        """
        if self.embedding_dimensions <= 0:
            raise ConfigurationError("embedding_dimensions must be greater than 0")

        if self.distance_metric not in DISTANCE_METRICS:
            raise ConfigurationError(
                f"Unknown distance metric '{self.distance_metric}'. "
                f"Supported: {', '.join(sorted(DISTANCE_METRICS))}"
            )

        if self.store_backend not in (SQLITE_BACKEND, MEMORY_BACKEND):
            raise ConfigurationError(
                f"Unknown vector store backend '{self.store_backend}'. "
                f"Supported: {SQLITE_BACKEND}, {MEMORY_BACKEND}"
            )

        if self.store_backend == SQLITE_BACKEND and not self.db_path:
            raise ConfigurationError("db_path is required for the sqlite backend")

        validate_chunking(self.chunk_size, self.chunk_overlap)

        if self.top_k <= 0:
            raise ConfigurationError("top_k must be greater than 0")

        if self.context_max_items <= 0:
            raise ConfigurationError("context_max_items must be greater than 0")

        if self.context_max_chars_per_item <= 0:
            raise ConfigurationError("context_max_chars_per_item must be greater than 0")

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be greater than 0")

    @property
    def chunking_policy(self) -> ChunkingPolicy:
        return ChunkingPolicy(chunk_size=self.chunk_size, overlap=self.chunk_overlap)

    @property
    def context_policy(self) -> ContextPolicy:
        return ContextPolicy(
            max_items=self.context_max_items,
            max_chars_per_item=self.context_max_chars_per_item,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Optional[Union[str, Path]] = None) -> RagConfig:
    """
    Load configuration from an optional YAML file plus environment overrides.

    Args:
        config_path: Path to a YAML file (defaults only if None)

    Returns:
        Validated RagConfig

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        logger.info(f"Loading config from: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    config = RagConfig.from_dict(data)
    config.apply_env_overrides()
    config.validate()
    return config


def build_store(config: RagConfig) -> VectorStore:
    """Create the configured vector store (schema not yet initialized)."""
    return create_vector_store(
        backend=config.store_backend,
        db_path=config.db_path,
        dimension=config.embedding_dimensions,
        distance_metric=config.distance_metric,
    )


def build_orchestrator(
    config: RagConfig,
    store: Optional[VectorStore] = None,
) -> RetrievalOrchestrator:
    """
    Wire an orchestrator from configuration.

    Args:
        config: Validated configuration
        store: Existing store to use instead of building one

    Returns:
        RetrievalOrchestrator using one OllamaClient for embeddings and chat
    """
    client = OllamaClient(
        base_url=config.ollama_base_url,
        chat_model=config.chat_model,
        embed_model=config.embed_model,
        timeout_seconds=config.timeout_seconds,
    )

    return RetrievalOrchestrator(
        embedder=client,
        store=store if store is not None else build_store(config),
        chat_provider=client,
        chunking_policy=config.chunking_policy,
        context_policy=config.context_policy,
        document_prefix=config.document_prefix,
        query_prefix=config.query_prefix,
    )

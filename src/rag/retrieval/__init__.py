"""
Retrieval subpackage - chunking, ranking, context assembly and orchestration.
"""

from .chunker import Chunker, segment, split_into_sentences
from .search import (
    COSINE,
    EUCLIDEAN,
    cosine_similarity,
    cosine_distance,
    euclidean_distance,
    rank_records,
)
from .context_assembler import ContextAssembler, assemble
from .orchestrator import QUESTION_SYSTEM_PROMPT, RetrievalOrchestrator

__all__ = [
    "Chunker",
    "segment",
    "split_into_sentences",
    "COSINE",
    "EUCLIDEAN",
    "cosine_similarity",
    "cosine_distance",
    "euclidean_distance",
    "rank_records",
    "ContextAssembler",
    "assemble",
    "QUESTION_SYSTEM_PROMPT",
    "RetrievalOrchestrator",
]

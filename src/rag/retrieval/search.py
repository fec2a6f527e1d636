"""
Retrieval Search - Distance metrics and nearest-neighbor ranking.

Implements:
- Cosine similarity / cosine distance scoring
- Euclidean (L2) distance scoring
- Top-K ranking with deterministic tie-breaks (lower id first)
"""

import logging
import math
from typing import Callable, Dict, Iterable, List, Sequence

from ..contracts.retrieval_contracts import RetrievalResult, VectorRecord
from ..core.exceptions import ConfigurationError, DimensionMismatchError

logger = logging.getLogger(__name__)


COSINE = "cosine"
EUCLIDEAN = "euclidean"

# Stored vectors are float32 (about 7 significant digits), so distances
# equal to this many decimal places are ties
DISTANCE_PRECISION = 6


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        Cosine similarity score between -1 and 1

    Raises:
        ValueError: If a vector is empty
        DimensionMismatchError: If the vectors have different dimensions
    """
    if not vec_a or not vec_b:
        raise ValueError("Vectors cannot be empty")

    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(len(vec_a), len(vec_b))

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    magnitude_a = math.sqrt(sum(a * a for a in vec_a))
    magnitude_b = math.sqrt(sum(b * b for b in vec_b))

    # Handle zero vectors
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (magnitude_a * magnitude_b)


def cosine_distance(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine distance: 1 - cosine similarity. Lower is more similar."""
    return 1.0 - cosine_similarity(vec_a, vec_b)


def euclidean_distance(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Euclidean (L2) distance between two vectors.

    Raises:
        ValueError: If a vector is empty
        DimensionMismatchError: If the vectors have different dimensions
    """
    if not vec_a or not vec_b:
        raise ValueError("Vectors cannot be empty")

    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(len(vec_a), len(vec_b))

    return math.sqrt(sum((a - b) ** 2 for a, b in zip(vec_a, vec_b)))


DISTANCE_METRICS: Dict[str, Callable[[Sequence[float], Sequence[float]], float]] = {
    COSINE: cosine_distance,
    EUCLIDEAN: euclidean_distance,
}


def get_distance_function(metric: str) -> Callable[[Sequence[float], Sequence[float]], float]:
    """
    Look up a distance function by metric name.

    Raises:
        ConfigurationError: If the metric is unknown
    """
    try:
        return DISTANCE_METRICS[metric]
    except KeyError:
        raise ConfigurationError(
            f"Unknown distance metric '{metric}'. "
            f"Supported: {', '.join(sorted(DISTANCE_METRICS))}"
        ) from None


def rank_records(
    query_embedding: Sequence[float],
    records: Iterable[VectorRecord],
    k: int,
    metric: str = COSINE,
) -> List[RetrievalResult]:
    """
    Rank records by distance to the query and return the top K.

    Results are ordered ascending by distance; ties are broken by record id
    so identical queries always return the same order.

    Args:
        query_embedding: Query vector
        records: Candidate records
        k: Number of results to return
        metric: Distance metric name

    Returns:
        Up to k RetrievalResult objects

    Raises:
        ConfigurationError: If k <= 0 or the metric is unknown
        DimensionMismatchError: If a record's dimension differs from the query's
    """
    if k <= 0:
        raise ConfigurationError("k must be greater than 0")

    distance_fn = get_distance_function(metric)

    scored = []
    for record in records:
        distance = distance_fn(query_embedding, record.embedding)
        scored.append((round(distance, DISTANCE_PRECISION), record.id, distance, record))

    scored.sort(key=lambda item: (item[0], item[1]))

    results = [
        RetrievalResult(
            id=record.id,
            text=record.text,
            embedding=record.embedding,
            distance=distance,
        )
        for _, _, distance, record in scored[:k]
    ]

    logger.debug(f"Ranked {len(scored)} records by {metric} distance, returning {len(results)}")
    return results

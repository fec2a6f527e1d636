"""
Core Utilities - Shared helper functions for the RAG module.

Provides the fixed-width embedding encoding used by the vector store and the
short record label derived from chunk text.
"""

import math
import struct
from typing import Sequence, Tuple


# Little-endian float32, the layout sqlite-vec and libSQL F32_BLOB columns use
FLOAT32_SIZE = 4

TITLE_MAX_CHARS = 8


def encode_vector(vector: Sequence[float]) -> bytes:
    """
    Encode an embedding vector as packed little-endian float32 values.

    Args:
        vector: Embedding vector

    Returns:
        Packed bytes, 4 bytes per dimension

    Raises:
        ValueError: If the vector is empty, holds non-finite values or
            values outside the float32 range

    Example:
        >>> len(encode_vector([0.1, 0.2, 0.3]))
        12
    """
    if not vector:
        raise ValueError("Vector cannot be empty")

    values = [float(v) for v in vector]
    if not all(math.isfinite(v) for v in values):
        raise ValueError("Vector contains non-finite values")

    try:
        return struct.pack(f"<{len(values)}f", *values)
    except (OverflowError, struct.error) as e:
        raise ValueError(f"Vector does not fit float32: {e}") from e


def decode_vector(blob: bytes) -> Tuple[float, ...]:
    """
    Decode packed little-endian float32 bytes into a vector.

    Args:
        blob: Bytes produced by encode_vector

    Returns:
        Tuple of floats

    Raises:
        ValueError: If the byte length is not a multiple of 4
    """
    if len(blob) % FLOAT32_SIZE != 0:
        raise ValueError(f"Invalid vector blob length: {len(blob)}")

    return struct.unpack(f"<{len(blob) // FLOAT32_SIZE}f", blob)


def to_float32(vector: Sequence[float]) -> Tuple[float, ...]:
    """Round-trip a vector through the stored float32 precision."""
    return decode_vector(encode_vector(vector))


def derive_title(text: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    """
    Derive the short label stored with a vector record.

    The label is the first `max_chars` characters of the chunk text.
    """
    return text[:max_chars]

"""
Chunker - Split text into overlapping sentence chunks for retrieval.

Implements sentence segmentation as an ordered chain of strategies:
1. Punctuation boundary (terminal . ! ? followed by whitespace)
2. Split on ". "
3. Split on newline
4. Whole input as one sentence

The first strategy that finds a split wins. The order is part of the
contract: chunk counts downstream depend on it.
"""

import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

from ..contracts.retrieval_contracts import Chunk, ChunkingPolicy
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


SENTENCE_PATTERN = re.compile(r"([^.!?]+[.!?])\s+")

SplitStrategy = Callable[[str], Optional[List[str]]]


def split_on_punctuation(text: str) -> Optional[List[str]]:
    """
    Split on terminal punctuation followed by whitespace.

    Text after the last boundary (a final sentence with no trailing
    whitespace, or one without punctuation) is kept as the last sentence.
    """
    matches = SENTENCE_PATTERN.findall(text)
    if not matches:
        return None

    sentences = [match.strip() for match in matches]

    remainder = SENTENCE_PATTERN.sub("", text).strip()
    if remainder:
        sentences.append(remainder)

    return sentences


def split_on_period_space(text: str) -> Optional[List[str]]:
    """Split on ". "; succeeds only when it yields more than one part."""
    parts = text.split(". ")
    return parts if len(parts) > 1 else None


def split_on_newline(text: str) -> Optional[List[str]]:
    """Split on newlines; succeeds only when it yields more than one part."""
    parts = text.split("\n")
    return parts if len(parts) > 1 else None


def whole_text(text: str) -> Optional[List[str]]:
    """Treat the whole input as one sentence."""
    return [text]


SENTENCE_STRATEGIES: Tuple[Tuple[str, SplitStrategy], ...] = (
    ("punctuation", split_on_punctuation),
    ("period_space", split_on_period_space),
    ("newline", split_on_newline),
    ("whole_text", whole_text),
)


def split_into_sentences(
    text: str,
    strategies: Sequence[Tuple[str, SplitStrategy]] = SENTENCE_STRATEGIES,
) -> List[str]:
    """
    Split text into sentences using the first strategy that finds a split.

    Args:
        text: Text to split
        strategies: Ordered (name, strategy) pairs

    Returns:
        List of sentences (empty for empty text)
    """
    if not text:
        return []

    for name, strategy in strategies:
        sentences = strategy(text)
        if sentences is not None:
            logger.debug(f"Split text into {len(sentences)} sentences using '{name}'")
            return sentences

    return [text]


def validate_chunking(chunk_size: int, overlap: int) -> None:
    """
    Validate chunking parameters.

    Raises:
        ConfigurationError: If chunk_size <= 0, overlap < 0 or overlap >= chunk_size
    """
    if chunk_size <= 0:
        raise ConfigurationError("chunk_size must be greater than 0")

    if overlap < 0:
        raise ConfigurationError("overlap must be non-negative")

    if overlap >= chunk_size:
        raise ConfigurationError("overlap must be less than chunk_size")


def segment(text: str, chunk_size: int, overlap: int) -> List[Chunk]:
    """
    Split text into overlapping sentence chunks.

    Sentences are grouped into windows of `chunk_size`, advancing by
    `chunk_size - overlap` sentences per chunk and joined with a single space.
    The last window may be shorter.

    Args:
        text: Text content to chunk
        chunk_size: Sentences per chunk
        overlap: Sentences shared between consecutive chunks

    Returns:
        List of Chunk objects (empty for empty text)

    Raises:
        ConfigurationError: If the parameters are invalid

    Example:
        >>> [c.text for c in segment("The cat sat. The dog ran. Birds fly south.", 2, 0)]
        ['The cat sat. The dog ran.', 'Birds fly south.']
    """
    validate_chunking(chunk_size, overlap)

    text = text.strip() if text else ""
    sentences = split_into_sentences(text)
    if not sentences:
        return []

    step = chunk_size - overlap
    chunks = []

    for start in range(0, len(sentences), step):
        window = sentences[start:start + chunk_size]
        chunks.append(Chunk(text=" ".join(window), source_offset=len(chunks)))

    return chunks


class Chunker:
    """
    Chunks text according to a ChunkingPolicy.

    Example:
        >>> chunker = Chunker(ChunkingPolicy(chunk_size=16, overlap=4))
        >>> chunks = chunker.chunk("Long document text...")
    """

    def __init__(self, policy: Optional[ChunkingPolicy] = None):
        """
        Initialize the chunker.

        Args:
            policy: Chunking policy (uses default if not provided)

        Raises:
            ConfigurationError: If the policy is invalid
        """
        self.policy = policy or ChunkingPolicy()
        validate_chunking(self.policy.chunk_size, self.policy.overlap)

    def chunk(self, content: str) -> List[Chunk]:
        """
        Split content into chunks.

        Args:
            content: Text content to chunk

        Returns:
            List of Chunk objects
        """
        chunks = segment(content, self.policy.chunk_size, self.policy.overlap)
        logger.debug(
            f"Created {len(chunks)} chunks "
            f"(chunk_size={self.policy.chunk_size}, overlap={self.policy.overlap})"
        )
        return chunks

"""
Context Assembler - Bound ranked retrieval results into one context string.

Deterministic bounding rules:
- Ranked order is kept (closest first)
- At most `max_items` results are included; later ones are dropped
- Each item is cut to `max_chars_per_item` characters plus an ellipsis marker
- Items are joined by a fixed separator
- An empty result set yields a placeholder, never an empty string
"""

import logging
from typing import Optional, Sequence

from ..contracts.retrieval_contracts import (
    CONTEXT_SEPARATOR,
    NO_CONTEXT_PLACEHOLDER,
    TRUNCATION_MARKER,
    ContextPolicy,
    RetrievalResult,
)
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def truncate_item(text: str, max_chars: int) -> str:
    """
    Cut text to max_chars characters, appending the truncation marker.

    Text within the limit is returned unchanged.
    """
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def assemble(
    results: Sequence[RetrievalResult],
    max_items: int,
    max_chars_per_item: int,
    separator: str = CONTEXT_SEPARATOR,
    placeholder: str = NO_CONTEXT_PLACEHOLDER,
) -> str:
    """
    Assemble ranked retrieval results into a bounded context string.

    Args:
        results: Retrieval results, closest first
        max_items: Maximum number of results to include
        max_chars_per_item: Maximum characters kept per result
        separator: String placed between items
        placeholder: Returned when results is empty

    Returns:
        Context string (the placeholder when there are no results)

    Raises:
        ConfigurationError: If max_items or max_chars_per_item is not positive
    """
    if max_items <= 0:
        raise ConfigurationError("max_items must be greater than 0")

    if max_chars_per_item <= 0:
        raise ConfigurationError("max_chars_per_item must be greater than 0")

    if not results:
        logger.debug("No retrieval results; using context placeholder")
        return placeholder

    selected = list(results[:max_items])
    if len(results) > max_items:
        logger.debug(f"Dropped {len(results) - max_items} results to meet max_items={max_items}")

    items = [truncate_item(result.text, max_chars_per_item) for result in selected]
    truncated = sum(1 for item, result in zip(items, selected) if item != result.text)
    if truncated:
        logger.debug(f"Truncated {truncated} context items to {max_chars_per_item} chars")

    context = separator.join(items)
    return context if context.strip() else placeholder


class ContextAssembler:
    """Assembles context according to a ContextPolicy."""

    def __init__(self, policy: Optional[ContextPolicy] = None):
        self.policy = policy or ContextPolicy()

    def assemble(self, results: Sequence[RetrievalResult]) -> str:
        return assemble(
            results,
            max_items=self.policy.max_items,
            max_chars_per_item=self.policy.max_chars_per_item,
            separator=self.policy.separator,
            placeholder=self.policy.placeholder,
        )

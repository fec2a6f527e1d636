"""
Logging utilities for the RAG module.

Provides structured logging with request context so that every log line of
one ingest or answer pipeline can be tied back to the request that ran it.
"""

import json
import logging
import sys
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional


CONTEXT_FIELDS = ("request_id", "operation", "chunk_index", "top_k")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Request context fields if present (request_id, operation, ...)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with request context.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [request_id=X operation=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        context_parts = []
        for field in ("request_id", "operation"):
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    structured: bool = False,
    include_timestamp: bool = True,
) -> None:
    """
    Configure logging for the rag package.

    Args:
        level: Logging level (default: INFO)
        structured: If True, output JSON-structured logs; if False, human-readable
        include_timestamp: Whether to include timestamp in log messages

    Example:
        >>> from rag.core.logging import configure_logging
        >>> configure_logging(level=logging.DEBUG, structured=True)
    """
    rag_logger = logging.getLogger("rag")
    rag_logger.setLevel(level)

    # Only add handler if none exist (avoid duplicate handlers)
    if not rag_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

        handler.setFormatter(formatter)
        rag_logger.addHandler(handler)


class RequestContext:
    """
    Context manager scoping log fields to one ingest or answer request.

    Example:
        >>> with RequestContext(operation="ingest"):
        ...     log_with_context(logger, logging.INFO, "Stored chunk")
    """

    # One active context per thread
    _local = threading.local()

    def __init__(
        self,
        operation: Optional[str] = None,
        request_id: Optional[str] = None,
        **extra: Any,
    ):
        self.context = {
            "request_id": request_id or uuid.uuid4().hex[:12],
            "operation": operation,
            **extra,
        }
        self.context = {k: v for k, v in self.context.items() if v is not None}
        self._previous: Optional["RequestContext"] = None

    @property
    def request_id(self) -> str:
        return self.context["request_id"]

    def __enter__(self) -> "RequestContext":
        self._previous = getattr(RequestContext._local, "current", None)
        RequestContext._local.current = self
        return self

    def __exit__(self, *args) -> None:
        RequestContext._local.current = self._previous

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current request context."""
        current = getattr(cls._local, "current", None)
        if current is None:
            return {}
        return current.context.copy()


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with the current request context merged into `extra`.

    Args:
        logger: The logger to use
        level: Log level (e.g., logging.INFO)
        message: Log message
        **extra: Additional fields to include
    """
    context = RequestContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)

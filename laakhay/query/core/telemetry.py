"""Structured logging for query lifecycle events.

Each helper emits one record with a constant event name as the message and
the event fields in ``extra``, so log pipelines can filter on them.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def log_run_started(*, query: str, generation: int, param_count: int) -> None:
    """Log the start of a new run.

    Args:
        query: Query name
        generation: Generation assigned to the run
        param_count: Number of positional parameters passed to the service
    """
    logger.debug(
        "query_run_started",
        extra={"query": query, "generation": generation, "param_count": param_count},
    )


def log_run_succeeded(*, query: str, generation: int, latency_ms: float) -> None:
    logger.debug(
        "query_run_succeeded",
        extra={"query": query, "generation": generation, "latency_ms": latency_ms},
    )


def log_run_failed(
    *,
    query: str,
    generation: int,
    error_type: str,
    error_message: str,
    latency_ms: float,
) -> None:
    """Log a captured service failure.

    Failures are part of normal operation (they land in ``error``), so this
    is a debug record, not an error record.
    """
    logger.debug(
        "query_run_failed",
        extra={
            "query": query,
            "generation": generation,
            "error_type": error_type,
            "error_message": error_message,
            "latency_ms": latency_ms,
        },
    )


def log_run_discarded(*, query: str, generation: int, current_generation: int) -> None:
    """Log a settlement dropped because a newer run or a cancel superseded it."""
    logger.debug(
        "query_run_discarded",
        extra={
            "query": query,
            "generation": generation,
            "current_generation": current_generation,
        },
    )


def log_cancelled(*, query: str, generation: int, was_pending: bool) -> None:
    logger.debug(
        "query_cancelled",
        extra={"query": query, "generation": generation, "was_pending": was_pending},
    )


def log_callback_error(*, query: str, generation: int, error: BaseException) -> None:
    """Log an exception raised by a caller-supplied hook during ``run``."""
    logger.error(
        "query_callback_error",
        extra={
            "query": query,
            "generation": generation,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
        exc_info=error,
    )

"""
Centralized error types for the notification pipeline, plus mapping to HTTP for the cron route.
Constants and a reusable helper so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Pipeline errors
# ---------------------------------------------------------------------------


class NotificationPipelineError(Exception):
    """Base class for errors raised by the notification pipeline."""


class IndexerError(NotificationPipelineError):
    """Indexer unreachable, non-2xx, GraphQL errors, or a malformed response."""


class NotificationPersistenceError(NotificationPipelineError):
    """Insert/update of a notification row failed after preference gates passed."""


class PushGatewayError(NotificationPipelineError):
    """Push gateway call failed. Caught at the flush boundary; never escapes the queue."""


# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_SERVICE_UNAVAILABLE = 503  # indexer down, upstream timeout
STATUS_INTERNAL_ERROR = 500

MSG_INDEXER_UNAVAILABLE = "Event indexer unavailable; cursor advanced, events will be picked up by overlap or skipped."


# ---------------------------------------------------------------------------
# Error rules: (predicate, status_code, detail_message)
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

def _is_indexer_error(exc: Exception) -> bool:
    return isinstance(exc, IndexerError)


def _is_persistence_error(exc: Exception) -> bool:
    return isinstance(exc, NotificationPersistenceError)


# List of (predicate, status_code, detail). First match wins; detail None = use exception message.
PIPELINE_ERROR_RULES: list[tuple[Callable[[Exception], bool], int, str | None]] = [
    (_is_indexer_error, STATUS_SERVICE_UNAVAILABLE, MSG_INDEXER_UNAVAILABLE),
    (_is_persistence_error, STATUS_INTERNAL_ERROR, None),
]


def pipeline_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from a worker run into an HTTPException.
    Uses PIPELINE_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for predicate, status_code, detail in PIPELINE_ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail or str(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))

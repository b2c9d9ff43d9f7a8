"""
Error Taxonomy and Global Error Handling

This module defines the exception hierarchy shared by every layer of the RAG
core, and the FastAPI exception handlers that turn those exceptions into HTTP
responses.

Design Goals
------------
- One base class (RagError) for every domain failure
- Each failure class maps to exactly one HTTP status code
- Never leak internal exception details for unexpected failures
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("rag.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class RagError(RuntimeError):
    """Base error for all RAG core failures."""

    code: str = "rag_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR


class InputError(RagError):
    """Raised when a source or request argument is missing or invalid."""

    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(RagError):
    """Raised when an operation references an unknown document or chunk."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class NotReadyError(RagError):
    """Raised when indexing or search is requested before the model is loaded."""

    code = "model_not_ready"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ModelError(RagError):
    """Raised when the embedding collaborator fails to load or encode."""

    code = "model_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceError(RagError):
    """Raised when a storage read or write fails."""

    code = "persistence_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def rag_error_handler(
    request: Request,
    exc: RagError,
) -> JSONResponse:
    """
    Translate a RagError into its HTTP status and a machine-readable payload.

    Client errors (4xx) are logged at WARNING; server-side failures are
    logged with their traceback.
    """
    if exc.status_code >= 500:
        logger.error(
            "%s during request: %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
    else:
        logger.warning(
            "%s during request: %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
        )

    payload: Dict[str, Any] = {
        "error": exc.code,
        "detail": str(exc),
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    This handler should be registered with FastAPI as the final safety net
    for any exception not otherwise handled by route-level or framework-level
    handlers.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    - Ensures consistent error response format across the entire API.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )

"""
RAG Service Application Entry Point

This module defines the FastAPI application instance, wires the storage,
embedding capability and background indexing worker into a RagService,
registers all routers, and configures global exception handling.

Design Goals
------------
- Explicit dependency initialization order
- Centralized router registration
- Test-friendly via create_app()
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .config import settings
from .core.errors import RagError, rag_error_handler, unhandled_exception_handler
from .db import Database
from .embeddings.state import EmbeddingHandle, EncoderFactory
from .indexing.queue import IndexingQueue, process_indexing_worker_task
from .services.rag_service import RagService

from .api import (
    chunk_routes,
    document_routes,
    embedding_routes,
    health_routes,
    search_routes,
)


logger = logging.getLogger("rag.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(
    database_url: Optional[str] = None,
    encoder_factory: Optional[EncoderFactory] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    database_url : Optional[str]
        Overrides settings.database_url (tests point this at a temp file).

    encoder_factory : Optional[EncoderFactory]
        Overrides the HTTP Embedder (tests pass a deterministic fake).

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    logging.getLogger("rag").setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting local-rag-core")

        db = Database.from_url(database_url) if database_url else Database()
        await db.create_all()

        queue = IndexingQueue()
        service = RagService(
            db,
            EmbeddingHandle(),
            encoder_factory=encoder_factory,
            queue=queue,
        )
        app.state.rag_service = service

        if settings.load_model_on_startup:
            try:
                await service.init_embedding_model()
            except RagError as exc:
                logger.error("Embedding model not loaded at startup: %s", exc)

        worker_task = asyncio.create_task(
            process_indexing_worker_task(queue, service.orchestrator)
        )

        try:
            yield
        finally:
            logger.info("Shutting down local-rag-core")
            worker_task.cancel()
            try:
                await worker_task
            except asyncio.CancelledError:
                pass
            await service.embeddings.aclose()
            await db.dispose()

    app = FastAPI(
        title="local-rag-core",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(RagError, rag_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(document_routes.router)
    app.include_router(chunk_routes.router)
    app.include_router(embedding_routes.router)
    app.include_router(search_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()

"""
Embeddings Routes

This module exposes endpoints for:
- Loading the embedding model and reporting whether it is loaded
- Indexing one document or every pending document
- Querying vector store statistics

Indexing and model loading can take a while; the requests block until the
work is done.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from .dependencies import get_rag_service
from .models import ModelStatusResponse, OperationResult
from ..config import settings
from ..embeddings.models import EmbeddingStats, IndexSummary
from ..services.rag_service import RagService

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


def _model_status(service: RagService) -> ModelStatusResponse:
    return ModelStatusResponse(
        loaded=service.is_model_loaded(),
        model=settings.embedding_model,
        dimension=settings.embedding_dimension,
    )


# ---------------------------------------------------------------------
# Model lifecycle
# ---------------------------------------------------------------------

@router.post(
    "/model",
    response_model=ModelStatusResponse,
    summary="Load the embedding model",
    status_code=status.HTTP_200_OK,
)
async def init_model(
    service: Annotated[RagService, Depends(get_rag_service)],
) -> ModelStatusResponse:
    """
    Load the embedding model. Calling it again once loaded is a no-op.
    """
    await service.init_embedding_model()
    return _model_status(service)


@router.get("/model", response_model=ModelStatusResponse)
async def model_status(
    service: Annotated[RagService, Depends(get_rag_service)],
) -> ModelStatusResponse:
    return _model_status(service)


# ---------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------

@router.post(
    "/documents/{document_id}",
    response_model=OperationResult,
    summary="Embed every chunk of one document",
)
async def index_document(
    document_id: str,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> OperationResult:
    count = await service.index_document(document_id)
    return OperationResult(
        status="indexed",
        count=count,
        details={"document_id": document_id},
    )


@router.post(
    "/pending",
    response_model=IndexSummary,
    summary="Embed every document that has not been indexed yet",
)
async def index_pending(
    service: Annotated[RagService, Depends(get_rag_service)],
) -> IndexSummary:
    return await service.index_all_pending()


# ---------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------

@router.get("/stats", response_model=EmbeddingStats)
async def embedding_stats(
    service: Annotated[RagService, Depends(get_rag_service)],
) -> EmbeddingStats:
    return await service.embedding_stats()

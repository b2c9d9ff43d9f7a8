"""
Search Routes

This module defines the semantic search endpoint backed by the SQLite vector
store. The query is embedded with the loaded model and compared against every
stored chunk embedding.
"""

from fastapi import APIRouter, Depends, status
from typing import List, Annotated

from .models import SearchRequest
from .dependencies import get_rag_service
from ..embeddings.models import SearchResult
from ..services.rag_service import RagService

router = APIRouter(prefix="/search", tags=["search"])


@router.post(
    "/",
    response_model=List[SearchResult],
    summary="Vector-based semantic search",
    status_code=status.HTTP_200_OK,
)
async def search(
    req: SearchRequest,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> List[SearchResult]:
    """
    Perform a vector-based semantic search over indexed chunks.

    Parameters
    ----------
    req : SearchRequest
        Contains:
        - query: Search query string
        - k: Number of top results to return (defaults to settings.search_default_k)

    Returns
    -------
    List[SearchResult]
        Ranked list of matching chunks, highest score first.
    """
    return await service.search(req.query, k=req.k)

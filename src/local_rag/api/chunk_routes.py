from typing import Annotated

from fastapi import APIRouter, Depends

from .dependencies import get_rag_service
from ..embeddings.models import ChunkStats
from ..services.rag_service import RagService

router = APIRouter(prefix="/chunks", tags=["chunks"])


@router.get("/stats", response_model=ChunkStats)
async def chunk_stats(
    service: Annotated[RagService, Depends(get_rag_service)],
) -> ChunkStats:
    return await service.chunk_stats()

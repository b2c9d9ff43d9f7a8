from typing import Annotated

from fastapi import APIRouter, Depends

from .dependencies import get_rag_service
from ..services.rag_service import RagService

router = APIRouter(tags=["health"])


@router.get("/health")
def health(service: Annotated[RagService, Depends(get_rag_service)]):
    return {"status": "ok", "model_loaded": service.is_model_loaded()}

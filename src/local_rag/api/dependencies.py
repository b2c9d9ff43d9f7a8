from fastapi import Request

from ..services.rag_service import RagService


def get_rag_service(request: Request) -> RagService:
    """
    Return the RagService built by the application lifespan.
    """
    return request.app.state.rag_service

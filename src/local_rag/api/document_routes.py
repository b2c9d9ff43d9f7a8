"""
Document Routes

This module exposes endpoints for:
- Uploading extracted document text (stored together with its chunks)
- Listing, reading and deleting documents
- Inspecting the chunks of a document

Domain errors (unknown document, invalid input) are raised by the service and
translated to HTTP responses by the global RagError handler.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Header, status

from .dependencies import get_rag_service
from .models import (
    DocumentContentResponse,
    DocumentResponse,
    DocumentUploadRequest,
    DocumentUploadResponse,
    OperationResult,
)
from ..chunking import Chunk
from ..services.rag_service import RagService

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "",
    response_model=DocumentUploadResponse,
    summary="Store a document and its chunks",
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    req: DocumentUploadRequest,
    service: Annotated[RagService, Depends(get_rag_service)],
    x_request_id: Annotated[str, Header()] = "unknown",
) -> DocumentUploadResponse:
    """
    Store a document's metadata and extracted text, then chunk it.

    If auto-indexing is enabled the document is queued for embedding and
    the response reports it.
    """
    result = await service.upload_document(
        name=req.name,
        text=req.text,
        doc_type=req.doc_type,
        size=req.size,
        path=req.path,
        request_id=x_request_id,
    )
    return DocumentUploadResponse(
        document=DocumentResponse.from_record(result.document),
        chunk_count=result.chunk_count,
        queued_for_indexing=result.queued_for_indexing,
    )


@router.get(
    "",
    response_model=List[DocumentResponse],
    summary="List documents, newest first",
)
async def list_documents(
    service: Annotated[RagService, Depends(get_rag_service)],
) -> List[DocumentResponse]:
    docs = await service.list_documents()
    return [DocumentResponse.from_record(d) for d in docs]


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> DocumentResponse:
    return DocumentResponse.from_record(await service.get_document(document_id))


@router.get("/{document_id}/content", response_model=DocumentContentResponse)
async def get_document_content(
    document_id: str,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> DocumentContentResponse:
    content = await service.get_document_content(document_id)
    return DocumentContentResponse(document_id=document_id, content=content)


@router.get(
    "/{document_id}/chunks",
    response_model=List[Chunk],
    summary="Chunks of a document in text order",
)
async def get_document_chunks(
    document_id: str,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> List[Chunk]:
    return await service.get_chunks(document_id)


@router.delete(
    "/{document_id}",
    response_model=OperationResult,
    summary="Delete a document with its chunks and embeddings",
)
async def delete_document(
    document_id: str,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> OperationResult:
    await service.delete_document(document_id)
    return OperationResult(status="deleted", details={"document_id": document_id})

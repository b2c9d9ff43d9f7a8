"""
API Models for the RAG Service

This module defines the Pydantic models used for request/response validation
across the document, chunk, embedding and search endpoints.

Domain models (DocumentRecord, Chunk, SearchResult, stats) are returned as-is
where their shape is already the public contract; the models here cover
request payloads and the responses that have no domain counterpart.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, ConfigDict

from ..documents.models import DocumentRecord


# ---------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    Used for create/update/delete-style endpoints.
    """
    status: Literal["indexed", "deleted", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------

class DocumentUploadRequest(BaseModel):
    """
    A document whose text has already been extracted by the caller.
    """
    name: str = Field(..., min_length=1)
    text: str
    doc_type: Optional[str] = Field(
        default=None,
        description="pdf, txt or md. Inferred from the name's extension when omitted.",
    )
    size: Optional[int] = Field(default=None, ge=0)
    path: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class DocumentResponse(BaseModel):
    id: str
    name: str
    type: str
    size: int
    uploaded_at: datetime
    path: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_record(cls, doc: DocumentRecord) -> "DocumentResponse":
        return cls(
            id=doc.id,
            name=doc.name,
            type=doc.doc_type.value,
            size=doc.size,
            uploaded_at=doc.uploaded_at,
            path=doc.path,
        )


class DocumentUploadResponse(BaseModel):
    document: DocumentResponse
    chunk_count: int = Field(..., ge=0)
    queued_for_indexing: bool = False

    model_config = ConfigDict(extra="forbid")


class DocumentContentResponse(BaseModel):
    document_id: str
    content: str

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Embeddings & Search
# ---------------------------------------------------------------------

class ModelStatusResponse(BaseModel):
    loaded: bool
    model: str
    dimension: int = Field(..., ge=1)

    model_config = ConfigDict(extra="forbid")


class SearchRequest(BaseModel):
    """
    Vector search request payload.
    """
    query: str = Field(..., min_length=1)
    k: Optional[int] = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(extra="forbid")

"""
Document Data Models

Metadata for an uploaded document. Text extraction from PDF/TXT/MD files
happens outside the core; the core only receives the extracted text.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

logger = logging.getLogger("rag.documents")


class DocumentType(str, Enum):
    PDF = "pdf"
    TXT = "txt"
    MD = "md"

    @classmethod
    def from_extension(cls, ext: str) -> Optional["DocumentType"]:
        """
        Map a file extension (with or without the dot) to a type.

        Returns None for unsupported extensions.
        """
        ext = ext.lower().lstrip(".")
        if ext == "markdown":
            ext = "md"
        try:
            return cls(ext)
        except ValueError:
            return None


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an RFC 3339 timestamp, falling back to the current time.

    A malformed stored timestamp must never make a document unreadable.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass

    logger.warning("Unparseable timestamp %r, using current time", value)
    return datetime.now(timezone.utc)


class DocumentRecord(BaseModel):
    """
    A stored document's metadata.
    """

    id: str = Field(..., min_length=1)

    name: str = Field(..., min_length=1)

    doc_type: DocumentType

    size: int = Field(
        default=0,
        ge=0,
        description="Size in bytes of the source file, or of the UTF-8 text if no file.",
    )

    uploaded_at: datetime

    path: Optional[str] = Field(
        default=None,
        description="Location of the backing file, if the caller kept one.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        from_attributes=True,
    )

    @field_validator("doc_type", mode="before")
    @classmethod
    def _coerce_doc_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return DocumentType.from_extension(v) or DocumentType.TXT
        return v

    @field_validator("uploaded_at", mode="before")
    @classmethod
    def _coerce_uploaded_at(cls, v: Any) -> datetime:
        return parse_timestamp(v)


class UploadedDocument(BaseModel):
    """
    Outcome of an upload: the stored document and how it was chunked.
    """

    document: DocumentRecord
    chunk_count: int = Field(..., ge=0)
    queued_for_indexing: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)

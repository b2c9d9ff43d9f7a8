"""
Document Store

Persistence of document metadata and extracted text, bound to one session.
Deleting a document relies on ON DELETE CASCADE to remove its content,
chunks and embeddings in the same statement.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, DocumentContent
from ..documents.models import DocumentRecord


class DocumentStore:
    """
    Document persistence for a single unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save_document(self, doc: DocumentRecord, content: str) -> None:
        """
        Insert a document together with its extracted text.
        """
        self._session.add(
            Document(
                id=doc.id,
                name=doc.name,
                doc_type=doc.doc_type.value,
                size=doc.size,
                uploaded_at=doc.uploaded_at.isoformat(),
                path=doc.path,
            )
        )
        self._session.add(DocumentContent(document_id=doc.id, content=content))
        await self._session.flush()

    async def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        result = await self._session.execute(
            select(Document).where(Document.id == document_id)
        )
        row = result.scalar_one_or_none()
        return DocumentRecord.model_validate(row) if row is not None else None

    async def exists(self, document_id: str) -> bool:
        result = await self._session.execute(
            select(Document.id).where(Document.id == document_id)
        )
        return result.scalar_one_or_none() is not None

    async def get_all_documents(self) -> List[DocumentRecord]:
        """
        Return all documents, most recently uploaded first.
        """
        result = await self._session.execute(
            select(Document).order_by(Document.uploaded_at.desc(), Document.id)
        )
        return [DocumentRecord.model_validate(row) for row in result.scalars().all()]

    async def get_document_ids(self) -> List[str]:
        result = await self._session.execute(
            select(Document.id).order_by(Document.uploaded_at, Document.id)
        )
        return [row[0] for row in result.all()]

    async def get_document_content(self, document_id: str) -> Optional[str]:
        result = await self._session.execute(
            select(DocumentContent.content).where(
                DocumentContent.document_id == document_id
            )
        )
        return result.scalar_one_or_none()

    async def delete_document(self, document_id: str) -> bool:
        """
        Delete a document; content, chunks and embeddings cascade.

        Returns True if a document was removed.
        """
        result = await self._session.execute(
            delete(Document).where(Document.id == document_id)
        )
        return result.rowcount > 0

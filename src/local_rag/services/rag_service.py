"""
RAG Service

The public operations of the RAG core: document upload and removal, chunk
inspection, embedding model lifecycle, indexing and similarity search.

Every storage access goes through `Database.transaction()`; every call into
the embedding model goes through the EmbeddingWorker before a transaction is
opened.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..chunking import Chunk, ChunkConfig, chunk_text
from ..config import settings
from ..core.errors import InputError, NotFoundError
from ..db import ChunkStore, Database, DocumentStore, VectorStore
from ..documents.models import DocumentRecord, DocumentType, UploadedDocument
from ..embeddings.embedder import Embedder
from ..embeddings.models import ChunkStats, EmbeddingStats, IndexSummary, SearchResult
from ..embeddings.state import EmbeddingHandle, EncoderFactory
from ..indexing.orchestrator import IndexingOrchestrator
from ..indexing.queue import IndexingJob, IndexingQueue

logger = logging.getLogger("rag.service")


class RagService:
    """
    Facade over storage, chunking, the embedding capability and indexing.

    Parameters
    ----------
    db : Database
        Serialized store access.

    embeddings : EmbeddingHandle
        Current embedding capability (uninitialized or ready).

    encoder_factory : Optional[EncoderFactory]
        Builds the encoder on `init_embedding_model()`. Defaults to the HTTP
        Embedder configured from settings.

    chunk_config : Optional[ChunkConfig]
        Chunk size and overlap. Defaults to settings.chunk_size / chunk_overlap.

    queue : Optional[IndexingQueue]
        Background indexing queue used when `auto_index` is enabled.

    auto_index : Optional[bool]
        Enqueue uploads for indexing. Defaults to settings.auto_index_on_upload.
    """

    def __init__(
        self,
        db: Database,
        embeddings: Optional[EmbeddingHandle] = None,
        encoder_factory: Optional[EncoderFactory] = None,
        chunk_config: Optional[ChunkConfig] = None,
        queue: Optional[IndexingQueue] = None,
        auto_index: Optional[bool] = None,
    ) -> None:
        self.db = db
        self.embeddings = embeddings or EmbeddingHandle()
        self.encoder_factory: EncoderFactory = encoder_factory or Embedder
        self.chunk_config = chunk_config or ChunkConfig(
            chunk_size=settings.chunk_size,
            overlap=settings.chunk_overlap,
        )
        self.queue = queue
        self.auto_index = settings.auto_index_on_upload if auto_index is None else auto_index
        self.orchestrator = IndexingOrchestrator(db, self.embeddings)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def upload_document(
        self,
        name: str,
        text: str,
        doc_type: Optional[str] = None,
        size: Optional[int] = None,
        path: Optional[str] = None,
        request_id: str = "unknown",
    ) -> UploadedDocument:
        """
        Store a document with its extracted text and its chunks.

        The document type is taken from `doc_type` when given, otherwise from
        the extension of `name`; a name without an extension is plain text.

        Raises
        ------
        InputError
            If the name is empty or the type is unsupported.
        """
        name = (name or "").strip()
        if not name:
            raise InputError("Document name must not be empty")
        if text is None:
            raise InputError("Document text is required")

        resolved_type = self._resolve_doc_type(name, doc_type)

        document_id = str(uuid.uuid4())
        record = DocumentRecord(
            id=document_id,
            name=name,
            doc_type=resolved_type,
            size=size if size is not None else len(text.encode("utf-8")),
            uploaded_at=datetime.now(timezone.utc),
            path=path,
        )
        chunks = chunk_text(document_id, text, self.chunk_config)

        async with self.db.transaction() as session:
            await DocumentStore(session).save_document(record, text)
            await ChunkStore(session).save_chunks(chunks)

        logger.info(
            "Uploaded document %s (%s, %d chunks)", document_id, name, len(chunks)
        )

        queued = False
        if self.auto_index and self.queue is not None and chunks:
            await self.queue.enqueue(IndexingJob(document_id=document_id, request_id=request_id))
            queued = True

        return UploadedDocument(
            document=record,
            chunk_count=len(chunks),
            queued_for_indexing=queued,
        )

    async def list_documents(self) -> List[DocumentRecord]:
        async with self.db.transaction() as session:
            return await DocumentStore(session).get_all_documents()

    async def get_document(self, document_id: str) -> DocumentRecord:
        async with self.db.transaction() as session:
            doc = await DocumentStore(session).get_document(document_id)
        if doc is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return doc

    async def get_document_content(self, document_id: str) -> str:
        async with self.db.transaction() as session:
            content = await DocumentStore(session).get_document_content(document_id)
        if content is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return content

    async def delete_document(self, document_id: str) -> None:
        """
        Delete a document with its content, chunks and embeddings.

        The backing file, if any, is removed afterwards; failing to remove it
        is logged and does not fail the delete.
        """
        async with self.db.transaction() as session:
            store = DocumentStore(session)
            doc = await store.get_document(document_id)
            if doc is None:
                raise NotFoundError(f"Document not found: {document_id}")
            await store.delete_document(document_id)

        logger.info("Deleted document %s", document_id)

        if doc.path:
            try:
                Path(doc.path).unlink()
            except OSError as exc:
                logger.warning("Could not remove file %s for %s: %s", doc.path, document_id, exc)

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def get_chunks(self, document_id: str) -> List[Chunk]:
        async with self.db.transaction() as session:
            if not await DocumentStore(session).exists(document_id):
                raise NotFoundError(f"Document not found: {document_id}")
            return await ChunkStore(session).get_document_chunks(document_id)

    async def chunk_stats(self) -> ChunkStats:
        async with self.db.transaction() as session:
            return await ChunkStore(session).get_stats()

    # ------------------------------------------------------------------
    # Embedding model
    # ------------------------------------------------------------------

    async def init_embedding_model(self) -> bool:
        await self.embeddings.load(self.encoder_factory)
        return True

    def is_model_loaded(self) -> bool:
        return self.embeddings.is_ready

    async def embedding_stats(self) -> EmbeddingStats:
        async with self.db.transaction() as session:
            return await VectorStore(session).get_stats()

    # ------------------------------------------------------------------
    # Indexing & search
    # ------------------------------------------------------------------

    async def index_document(self, document_id: str) -> int:
        return await self.orchestrator.index_document(document_id)

    async def index_all_pending(self) -> IndexSummary:
        return await self.orchestrator.index_all_pending()

    async def search(self, query_text: str, k: Optional[int] = None) -> List[SearchResult]:
        """
        Return the k stored chunks most similar to the query.

        Raises
        ------
        InputError
            If the query is empty.
        NotReadyError
            If the embedding model is not initialized.
        """
        if not query_text or not query_text.strip():
            raise InputError("Query must not be empty")

        worker = self.embeddings.require()
        k = settings.search_default_k if k is None else k
        if k <= 0:
            return []

        query_vector = await worker.encode(query_text)

        async with self.db.transaction() as session:
            results = await VectorStore(session).search(query_vector, k=k)

        logger.debug("Search returned %d results (k=%d)", len(results), k)
        return results

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_doc_type(name: str, doc_type: Optional[str]) -> DocumentType:
        if doc_type:
            resolved = DocumentType.from_extension(doc_type)
            if resolved is None:
                raise InputError(f"Unsupported document type: {doc_type}")
            return resolved

        suffix = Path(name).suffix
        if not suffix:
            return DocumentType.TXT

        resolved = DocumentType.from_extension(suffix)
        if resolved is None:
            raise InputError(f"Unsupported document type: {suffix}")
        return resolved

"""
Indexing Orchestrator

Turns stored chunks into stored embeddings.

For each document the chunks are read in one short transaction, encoded on
the embedding worker with no lock held, and the resulting vectors are
written back in a second transaction. Either every vector of a document is
written or none is.
"""

from __future__ import annotations

import logging
from typing import List

from ..chunking.models import Chunk
from ..core.errors import ModelError, NotFoundError
from ..db import ChunkStore, Database, DocumentStore, VectorStore
from ..embeddings.models import IndexSummary
from ..embeddings.state import EmbeddingHandle
from ..embeddings.worker import EmbeddingWorker

logger = logging.getLogger("rag.indexing")


class IndexingOrchestrator:
    """
    Coordinates chunk storage, the embedding worker and the vector store.
    """

    def __init__(self, db: Database, embeddings: EmbeddingHandle) -> None:
        self._db = db
        self._embeddings = embeddings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def index_document(self, document_id: str) -> int:
        """
        Embed and store every chunk of one document.

        Parameters
        ----------
        document_id : str
            Id of a stored document.

        Returns
        -------
        int
            Number of vectors written (0 for a document without chunks).

        Raises
        ------
        NotReadyError
            If the embedding model is not initialized.
        NotFoundError
            If the document does not exist.
        ModelError
            If encoding fails or returns the wrong number of vectors.
        """
        worker = self._embeddings.require()

        async with self._db.transaction() as session:
            if not await DocumentStore(session).exists(document_id):
                raise NotFoundError(f"Document not found: {document_id}")
            chunks = await ChunkStore(session).get_document_chunks(document_id)

        if not chunks:
            logger.info("Document %s has no chunks, nothing to index", document_id)
            return 0

        return await self._embed_and_store(worker, document_id, chunks)

    async def index_all_pending(self) -> IndexSummary:
        """
        Index every document whose first chunk has no stored embedding.

        A document counts as indexed as soon as its first chunk has a vector;
        a document left partially indexed is not picked up again.

        A document deleted while it is being encoded is skipped. Any other
        failure aborts the run and propagates; documents completed before it
        stay indexed.
        """
        worker = self._embeddings.require()

        async with self._db.transaction() as session:
            document_ids = await DocumentStore(session).get_document_ids()

        summary = IndexSummary()

        for document_id in document_ids:
            async with self._db.transaction() as session:
                chunks = await ChunkStore(session).get_document_chunks(document_id)
                covered = bool(chunks) and await VectorStore(session).has(chunks[0].id)

            if not chunks:
                logger.debug("Skipping %s: no chunks", document_id)
                continue
            if covered:
                logger.debug("Skipping %s: already indexed", document_id)
                continue

            try:
                written = await self._embed_and_store(worker, document_id, chunks)
            except NotFoundError:
                logger.info("Skipping %s: deleted during indexing", document_id)
                continue

            summary = IndexSummary(
                documents_indexed=summary.documents_indexed + 1,
                chunks_embedded=summary.chunks_embedded + written,
            )

        logger.info(
            "Backfill complete: %d documents, %d chunks embedded",
            summary.documents_indexed,
            summary.chunks_embedded,
        )
        return summary

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _embed_and_store(
        self,
        worker: EmbeddingWorker,
        document_id: str,
        chunks: List[Chunk],
    ) -> int:
        try:
            vectors = await worker.encode_batch([c.content for c in chunks])
        except ModelError:
            logger.error("Encoding failed for document %s", document_id)
            raise

        if len(vectors) != len(chunks):
            raise ModelError(
                f"Encoder returned {len(vectors)} vectors for {len(chunks)} chunks "
                f"of document {document_id}"
            )

        async with self._db.transaction() as session:
            # The document may have been deleted while its batch was encoding
            if not await DocumentStore(session).exists(document_id):
                raise NotFoundError(f"Document not found: {document_id}")

            store = VectorStore(session)
            for chunk, vector in zip(chunks, vectors):
                await store.save(chunk.id, document_id, vector)

        logger.info("Indexed document %s: %d chunks", document_id, len(chunks))
        return len(chunks)

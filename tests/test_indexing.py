"""
Indexing Tests

Covers the orchestrator (single document and backfill) and the background
indexing queue worker, using a deterministic fake encoder.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from conftest import FailingEncoder, ShortEncoder
from local_rag.chunking import ChunkConfig, chunk_text
from local_rag.core.errors import ModelError, NotFoundError, NotReadyError
from local_rag.db import ChunkStore, DocumentStore, VectorStore
from local_rag.documents.models import DocumentRecord, DocumentType
from local_rag.embeddings.state import EmbeddingHandle
from local_rag.embeddings.worker import EmbeddingWorker
from local_rag.indexing.orchestrator import IndexingOrchestrator
from local_rag.indexing.queue import IndexingJob, IndexingQueue, process_indexing_worker_task

LONG_TEXT = " ".join(f"Sentence number {i} talks about topic {i % 7}." for i in range(60))


async def add_document(db, document_id, text=LONG_TEXT):
    record = DocumentRecord(
        id=document_id,
        name=f"{document_id}.txt",
        doc_type=DocumentType.TXT,
        size=len(text),
        uploaded_at=datetime.now(timezone.utc),
    )
    chunks = chunk_text(document_id, text, ChunkConfig(chunk_size=200, overlap=40))
    async with db.transaction() as session:
        await DocumentStore(session).save_document(record, text)
        await ChunkStore(session).save_chunks(chunks)
    return chunks


async def vector_count(db):
    async with db.transaction() as session:
        return (await VectorStore(session).get_stats()).total_vectors


def handle_for(encoder):
    return EmbeddingHandle.ready(EmbeddingWorker(encoder))


class DeletingWorker(EmbeddingWorker):
    """Deletes `victim` once, after the first batch is encoded and before its vectors are written."""

    def __init__(self, encoder, db, victim):
        super().__init__(encoder)
        self._db = db
        self._victim = victim

    async def encode_batch(self, texts):
        vectors = await super().encode_batch(texts)
        if self._victim is not None:
            victim, self._victim = self._victim, None
            async with self._db.transaction() as session:
                await DocumentStore(session).delete_document(victim)
        return vectors


class TestIndexDocument:
    async def test_embeds_every_chunk(self, db, ready_handle, fake_encoder):
        chunks = await add_document(db, "doc-1")
        orchestrator = IndexingOrchestrator(db, ready_handle)

        written = await orchestrator.index_document("doc-1")

        assert written == len(chunks) > 1
        assert await vector_count(db) == len(chunks)
        # One batch, in chunk order
        assert fake_encoder.calls == [[c.content for c in chunks]]

    async def test_reindexing_overwrites(self, db, ready_handle):
        chunks = await add_document(db, "doc-1")
        orchestrator = IndexingOrchestrator(db, ready_handle)

        await orchestrator.index_document("doc-1")
        await orchestrator.index_document("doc-1")

        assert await vector_count(db) == len(chunks)

    async def test_document_without_chunks(self, db, ready_handle, fake_encoder):
        await add_document(db, "empty", text="   ")
        orchestrator = IndexingOrchestrator(db, ready_handle)

        assert await orchestrator.index_document("empty") == 0
        assert fake_encoder.calls == []

    async def test_unknown_document(self, db, ready_handle):
        orchestrator = IndexingOrchestrator(db, ready_handle)
        with pytest.raises(NotFoundError):
            await orchestrator.index_document("missing")

    async def test_model_not_ready(self, db):
        await add_document(db, "doc-1")
        orchestrator = IndexingOrchestrator(db, EmbeddingHandle())

        with pytest.raises(NotReadyError):
            await orchestrator.index_document("doc-1")
        assert await vector_count(db) == 0

    async def test_encoder_failure_writes_nothing(self, db):
        await add_document(db, "doc-1")
        handle = handle_for(FailingEncoder())
        try:
            with pytest.raises(ModelError):
                await IndexingOrchestrator(db, handle).index_document("doc-1")
        finally:
            handle.unload()

        assert await vector_count(db) == 0

    async def test_vector_count_mismatch_writes_nothing(self, db):
        await add_document(db, "doc-1")
        handle = handle_for(ShortEncoder())
        try:
            with pytest.raises(ModelError):
                await IndexingOrchestrator(db, handle).index_document("doc-1")
        finally:
            handle.unload()

        assert await vector_count(db) == 0

    async def test_document_deleted_during_encoding(self, db, fake_encoder):
        await add_document(db, "doc-1")
        handle = EmbeddingHandle.ready(DeletingWorker(fake_encoder, db, "doc-1"))
        try:
            with pytest.raises(NotFoundError):
                await IndexingOrchestrator(db, handle).index_document("doc-1")
        finally:
            handle.unload()

        assert await vector_count(db) == 0


class TestIndexAllPending:
    async def test_indexes_only_pending_documents(self, db, ready_handle, fake_encoder):
        a = await add_document(db, "doc-a")
        b = await add_document(db, "doc-b", text="A short note.")
        await add_document(db, "doc-empty", text="")
        orchestrator = IndexingOrchestrator(db, ready_handle)
        await orchestrator.index_document("doc-a")
        fake_encoder.calls.clear()

        summary = await orchestrator.index_all_pending()

        assert summary.documents_indexed == 1
        assert summary.chunks_embedded == len(b)
        assert fake_encoder.calls == [["A short note."]]
        assert await vector_count(db) == len(a) + len(b)

    async def test_second_run_is_a_no_op(self, db, ready_handle):
        await add_document(db, "doc-a")
        await add_document(db, "doc-b")
        orchestrator = IndexingOrchestrator(db, ready_handle)

        first = await orchestrator.index_all_pending()
        second = await orchestrator.index_all_pending()

        assert first.documents_indexed == 2
        assert second.documents_indexed == 0
        assert second.chunks_embedded == 0

    async def test_first_chunk_coverage_heuristic(self, db, ready_handle, fake_encoder):
        chunks = await add_document(db, "doc-a")
        async with db.transaction() as session:
            await VectorStore(session).save(chunks[0].id, "doc-a", [1.0] * 16)

        summary = await IndexingOrchestrator(db, ready_handle).index_all_pending()

        # Partially indexed documents count as indexed
        assert summary.documents_indexed == 0
        assert fake_encoder.calls == []

    async def test_not_ready(self, db):
        with pytest.raises(NotReadyError):
            await IndexingOrchestrator(db, EmbeddingHandle()).index_all_pending()

    async def test_skips_document_deleted_during_encoding(self, db, fake_encoder):
        await add_document(db, "doc-a")
        b = await add_document(db, "doc-b", text="A short note.")
        handle = EmbeddingHandle.ready(DeletingWorker(fake_encoder, db, "doc-a"))
        try:
            summary = await IndexingOrchestrator(db, handle).index_all_pending()
        finally:
            handle.unload()

        assert summary.documents_indexed == 1
        assert summary.chunks_embedded == len(b)
        assert len(fake_encoder.calls) == 2
        async with db.transaction() as session:
            store = VectorStore(session)
            assert await store.has(b[0].id)
            assert (await store.get_stats()).total_documents == 1

    async def test_failure_aborts_backfill(self, db):
        await add_document(db, "doc-a")
        handle = handle_for(FailingEncoder())
        try:
            with pytest.raises(ModelError):
                await IndexingOrchestrator(db, handle).index_all_pending()
        finally:
            handle.unload()
        assert await vector_count(db) == 0


class TestIndexingQueue:
    async def test_worker_indexes_and_survives_failures(self, db, ready_handle):
        chunks = await add_document(db, "doc-1")
        queue = IndexingQueue()
        orchestrator = IndexingOrchestrator(db, ready_handle)
        worker = asyncio.create_task(process_indexing_worker_task(queue, orchestrator))

        try:
            await queue.enqueue(IndexingJob(document_id="missing", request_id="r1"))
            await queue.enqueue(IndexingJob(document_id="doc-1", request_id="r2"))
            await asyncio.wait_for(queue.join(), timeout=5)
        finally:
            worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)

        assert queue.qsize() == 0
        assert await vector_count(db) == len(chunks)

    async def test_enqueue_reports_size(self):
        queue = IndexingQueue()
        assert await queue.enqueue(IndexingJob(document_id="a")) == 1
        assert await queue.enqueue(IndexingJob(document_id="b")) == 2

"""
Async queue for background indexing of uploaded documents.
"""
import asyncio
import logging
from dataclasses import dataclass

from ..core.errors import RagError
from .orchestrator import IndexingOrchestrator

logger = logging.getLogger("rag.queue")


@dataclass
class IndexingJob:
    """Represents a request to index one stored document."""
    document_id: str

    # Metadata for tracing
    request_id: str = "unknown"


class IndexingQueue:
    """FIFO of indexing jobs consumed by a single worker task."""
    def __init__(self):
        self._queue: asyncio.Queue[IndexingJob] = asyncio.Queue()

    async def enqueue(self, job: IndexingJob) -> int:
        """Add a job to the queue. Returns current queue size."""
        await self._queue.put(job)
        qsize = self._queue.qsize()
        logger.info("Job enqueued: %s (Queue size: %d)", job.document_id, qsize)
        return qsize

    async def get_next_job(self) -> IndexingJob:
        return await self._queue.get()

    def task_done(self):
        self._queue.task_done()

    async def join(self):
        await self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()


async def process_indexing_worker_task(
    queue: IndexingQueue,
    orchestrator: IndexingOrchestrator,
):
    """
    Background worker that consumes jobs from the queue and indexes each
    document. A failing job is logged and the worker moves on.
    """
    logger.info("Indexing worker started.")

    while True:
        try:
            job = await queue.get_next_job()
        except asyncio.CancelledError:
            logger.info("Indexing worker cancelled.")
            break

        try:
            logger.info("Processing indexing job: %s [%s]", job.document_id, job.request_id)
            written = await orchestrator.index_document(job.document_id)
            logger.info("Finished indexing job: %s (%d chunks)", job.document_id, written)
        except asyncio.CancelledError:
            logger.info("Indexing worker cancelled.")
            queue.task_done()
            break
        except RagError as exc:
            logger.error("Failed to index %s: %s", job.document_id, exc)
        except Exception:
            logger.exception("Unexpected error in indexing worker")
        queue.task_done()

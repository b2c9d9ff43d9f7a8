"""
Embedding Worker

Runs a blocking Encoder on one dedicated background thread so that inference
never blocks the event loop, and never runs while the storage lock is held.
Requests are executed one at a time in submission order.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Sequence, TypeVar

from .embedder import Encoder
from ..core.errors import ModelError, RagError

logger = logging.getLogger("rag.embedding_worker")

T = TypeVar("T")


class EmbeddingWorker:
    """
    Async facade over a blocking Encoder.
    """

    def __init__(self, encoder: Encoder) -> None:
        self._encoder = encoder
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="embedding-worker",
        )

    @property
    def encoder(self) -> Encoder:
        return self._encoder

    @property
    def dimension(self) -> int:
        return self._encoder.dimension

    async def run(self, fn: Callable[..., T], *args: Any) -> T:
        """
        Run a blocking callable on the worker thread and await its result.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    async def encode(self, text: str) -> List[float]:
        vectors = await self.encode_batch([text])
        return vectors[0]

    async def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Encode texts on the worker thread.

        Raises
        ------
        ModelError
            If the encoder fails. Non-RAG exceptions from the encoder are
            wrapped so callers only deal with the error taxonomy.
        """
        if not texts:
            return []

        try:
            return await self.run(self._encoder.encode_batch, list(texts))
        except RagError:
            raise
        except Exception as exc:
            logger.error("Encoder failed on batch of %d texts: %s", len(texts), exc)
            raise ModelError(f"Inference failed: {type(exc).__name__}: {exc}") from exc

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
        close = getattr(self._encoder, "close", None)
        if callable(close):
            close()

"""
Embedding Capability

The embedding model is either not loaded yet or ready to serve requests. The
state is held by an EmbeddingHandle that is injected into the components that
need it; nothing reads a global "model loaded" flag.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .embedder import Encoder
from .worker import EmbeddingWorker
from ..core.errors import ModelError, NotReadyError, RagError

logger = logging.getLogger("rag.embedding_state")


@dataclass(frozen=True)
class Uninitialized:
    """No model loaded. `error` records the last failed load, if any."""
    error: Optional[str] = None


@dataclass(frozen=True)
class Ready:
    """Model loaded and served by `worker`."""
    worker: EmbeddingWorker


EmbeddingState = Union[Uninitialized, Ready]

EncoderFactory = Callable[[], Encoder]


class EmbeddingHandle:
    """
    Holder of the current EmbeddingState.
    """

    def __init__(self, state: Optional[EmbeddingState] = None) -> None:
        self._state: EmbeddingState = state or Uninitialized()
        self._load_lock = asyncio.Lock()

    @classmethod
    def ready(cls, worker: EmbeddingWorker) -> "EmbeddingHandle":
        return cls(Ready(worker))

    @property
    def state(self) -> EmbeddingState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    def require(self) -> EmbeddingWorker:
        """
        Return the worker, or raise NotReadyError if no model is loaded.
        """
        state = self._state
        if isinstance(state, Ready):
            return state.worker

        detail = f" (last load failed: {state.error})" if state.error else ""
        raise NotReadyError(
            f"Embedding model is not initialized{detail}. Initialize it first."
        )

    async def load(self, factory: EncoderFactory) -> EmbeddingWorker:
        """
        Build an encoder and verify it on a worker thread.

        Loading is idempotent: an already-ready handle is returned unchanged.

        Raises
        ------
        ModelError
            If the encoder cannot be created or fails its warm-up.
        """
        async with self._load_lock:
            if isinstance(self._state, Ready):
                return self._state.worker

            worker: Optional[EmbeddingWorker] = None
            try:
                encoder = factory()
                worker = EmbeddingWorker(encoder)
                load = getattr(encoder, "load", None)
                if callable(load):
                    await worker.run(load)
            except Exception as exc:
                if worker is not None:
                    worker.shutdown()
                self._state = Uninitialized(error=str(exc))
                if isinstance(exc, RagError):
                    raise
                logger.exception("Embedding model failed to load")
                raise ModelError(f"Model load failed: {type(exc).__name__}: {exc}") from exc

            self._state = Ready(worker)
            return worker

    def unload(self) -> None:
        state = self._state
        self._state = Uninitialized()
        if isinstance(state, Ready):
            state.worker.shutdown()

    async def aclose(self) -> None:
        """
        Unload from async code. Waiting for an in-flight encode happens off
        the event loop.
        """
        await asyncio.to_thread(self.unload)

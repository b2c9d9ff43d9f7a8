"""
Shared fixtures: a throwaway SQLite store and deterministic fake encoders.
"""

import hashlib
import threading
from typing import List, Sequence

import numpy as np
import pytest

from local_rag.db import Database
from local_rag.embeddings.state import EmbeddingHandle
from local_rag.embeddings.worker import EmbeddingWorker

FAKE_DIMENSION = 16


class FakeEncoder:
    """
    Deterministic unit-length vectors derived from a hash of the text.

    Identical texts map to identical vectors, so a chunk queried with its
    own content scores 1.0.
    """

    dimension = FAKE_DIMENSION

    def __init__(self):
        self.calls: List[List[str]] = []
        self.loaded = False

    def load(self) -> None:
        self.loaded = True

    def encode(self, text: str) -> List[float]:
        return self.encode_batch([text])[0]

    def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    @staticmethod
    def _vector(text: str) -> List[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()[:FAKE_DIMENSION]
        v = np.frombuffer(digest, dtype=np.uint8).astype(np.float32) - 127.5
        v /= np.linalg.norm(v)
        return v.tolist()


class FailingEncoder(FakeEncoder):
    """Raises on every batch."""

    def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        raise RuntimeError("inference exploded")


class ShortEncoder(FakeEncoder):
    """Returns one vector fewer than requested."""

    def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return super().encode_batch(texts)[:-1]


class BlockingEncoder(FakeEncoder):
    """Holds every batch until `release` is set; `started` fires when a batch begins."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def encode_batch(self, texts: Sequence[str]) -> List[List[float]]:
        self.started.set()
        self.release.wait(timeout=5)
        return super().encode_batch(texts)


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
async def db(tmp_path):
    database = Database.from_url(sqlite_url(tmp_path / "rag.db"))
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def ready_handle(fake_encoder):
    handle = EmbeddingHandle.ready(EmbeddingWorker(fake_encoder))
    yield handle
    handle.unload()

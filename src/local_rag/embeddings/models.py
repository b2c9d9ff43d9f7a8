"""
Embedding Data Models

This module defines the data models that flow between the vector store, the
similarity search and the indexing orchestrator.

- SearchCandidate: one stored vector plus the chunk text it was computed from
- SearchResult: one ranked hit returned to callers (never persisted)
- EmbeddingStats / ChunkStats: coverage counters
- IndexSummary: outcome of a backfill run
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from pydantic import BaseModel, Field, ConfigDict


@dataclass(frozen=True)
class SearchCandidate:
    """A stored embedding joined with its chunk content."""
    chunk_id: str
    document_id: str
    content: str
    vector: np.ndarray


class SearchResult(BaseModel):
    """
    A single similarity match.

    `score` is the dot product between query and stored vector; it is not
    clamped, so it can be negative for dissimilar text.
    """

    chunk_id: str = Field(..., min_length=1)
    document_id: str = Field(..., min_length=1)
    content: str
    score: float

    model_config = ConfigDict(extra="forbid", frozen=True)


class EmbeddingStats(BaseModel):
    total_vectors: int = Field(..., ge=0)
    total_documents: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class ChunkStats(BaseModel):
    total_chunks: int = Field(..., ge=0)
    total_documents: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class IndexSummary(BaseModel):
    """
    Result of indexing every pending document.
    """

    documents_indexed: int = Field(default=0, ge=0)
    chunks_embedded: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")

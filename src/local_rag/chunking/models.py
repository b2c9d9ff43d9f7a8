"""
Chunk Data Models

This module defines the canonical data models for text chunking:

- ChunkConfig: how a document is split
- Chunk: one contiguous character range of a document's trimmed text

Each Chunk corresponds to exactly one row in the `chunks` table and to at most
one embedding vector.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, ConfigDict, model_validator


class ChunkConfig(BaseModel):
    """
    Chunking parameters, measured in characters (not bytes, not tokens).

    `overlap >= chunk_size` is accepted: the chunker falls back to a half-chunk
    step so that it always makes forward progress.
    """

    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Target chunk length in characters.",
    )

    overlap: int = Field(
        default=200,
        ge=0,
        description="Characters shared between consecutive chunks.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def step(self) -> int:
        """Cursor advance between consecutive chunk starts."""
        if self.chunk_size > self.overlap:
            return max(1, self.chunk_size - self.overlap)
        return max(1, self.chunk_size // 2)


class Chunk(BaseModel):
    """
    A single chunk of a document.

    Offsets index characters of the *trimmed* document text:
    `0 <= start_offset < end_offset <= total_chars`.
    """

    id: str = Field(..., min_length=1)

    document_id: str = Field(..., min_length=1)

    chunk_index: int = Field(
        ...,
        ge=0,
        description="Dense 0-based position of this chunk within its document.",
    )

    content: str = Field(
        ...,
        min_length=1,
        description="Trimmed text of the chunk.",
    )

    start_offset: int = Field(..., ge=0)

    end_offset: int = Field(..., ge=1)

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        from_attributes=True,
    )

    @model_validator(mode="after")
    def _check_offsets(self) -> "Chunk":
        if self.start_offset >= self.end_offset:
            raise ValueError(
                f"start_offset ({self.start_offset}) must be < end_offset ({self.end_offset})"
            )
        return self


def make_chunk_id(document_id: str, chunk_index: int) -> str:
    return f"{document_id}-{chunk_index}"

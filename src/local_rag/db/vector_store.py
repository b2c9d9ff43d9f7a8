"""
Vector Store

SQLite-backed embedding storage with exact brute-force similarity search.

Vectors are stored as raw float32 BLOBs (see embeddings/codec.py), one row
per chunk. Search loads every stored vector joined with its chunk text and
ranks them in memory (see embeddings/search.py).
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np
from sqlalchemy import select, delete, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ChunkRow, EmbeddingRow
from ..embeddings.codec import VectorLike, decode_vector, encode_vector
from ..embeddings.models import EmbeddingStats, SearchCandidate, SearchResult
from ..embeddings.search import rank_candidates


class VectorStore:
    """
    Embedding persistence and similarity search for a single unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        """
        self._session = session

    async def save(
        self,
        chunk_id: str,
        document_id: str,
        vector: VectorLike,
    ) -> None:
        """
        Insert or replace the embedding for a chunk.

        The vector is stored as given; callers are responsible for
        normalization.
        """
        blob = encode_vector(vector)

        stmt = sqlite_insert(EmbeddingRow).values(
            chunk_id=chunk_id,
            document_id=document_id,
            embedding=blob,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[EmbeddingRow.chunk_id],
            set_={
                "document_id": stmt.excluded.document_id,
                "embedding": stmt.excluded.embedding,
            },
        )
        await self._session.execute(stmt)

    async def get(self, chunk_id: str) -> Optional[np.ndarray]:
        """
        Return the stored vector for a chunk, or None.
        """
        result = await self._session.execute(
            select(EmbeddingRow.embedding).where(EmbeddingRow.chunk_id == chunk_id)
        )
        blob = result.scalar_one_or_none()
        return decode_vector(blob) if blob is not None else None

    async def has(self, chunk_id: str) -> bool:
        result = await self._session.execute(
            select(func.count())
            .select_from(EmbeddingRow)
            .where(EmbeddingRow.chunk_id == chunk_id)
        )
        return (result.scalar() or 0) > 0

    async def delete_for_document(self, document_id: str) -> int:
        """
        Remove all embeddings owned by a document.

        Returns the number of deleted rows.
        """
        result = await self._session.execute(
            delete(EmbeddingRow).where(EmbeddingRow.document_id == document_id)
        )
        return result.rowcount

    async def search(
        self,
        query_vector: VectorLike,
        k: int = 5,
    ) -> List[SearchResult]:
        """
        Rank every stored embedding against the query by dot product.

        Parameters
        ----------
        query_vector : VectorLike
            Query embedding, expected unit-normalized.
        k : int
            Maximum number of results to return.

        Returns
        -------
        List[SearchResult]
            At most k results, by non-increasing score.
        """
        if k <= 0:
            return []

        result = await self._session.execute(
            select(
                EmbeddingRow.chunk_id,
                EmbeddingRow.document_id,
                EmbeddingRow.embedding,
                ChunkRow.content,
            )
            .join(ChunkRow, ChunkRow.id == EmbeddingRow.chunk_id)
            .order_by(EmbeddingRow.document_id, ChunkRow.chunk_index)
        )

        candidates = [
            SearchCandidate(
                chunk_id=row.chunk_id,
                document_id=row.document_id,
                content=row.content,
                vector=decode_vector(row.embedding),
            )
            for row in result.all()
        ]

        return rank_candidates(query_vector, candidates, k)

    async def get_stats(self) -> EmbeddingStats:
        """
        Return statistics about the stored vectors.
        """
        total_result = await self._session.execute(
            select(func.count()).select_from(EmbeddingRow)
        )
        docs_result = await self._session.execute(
            select(func.count(func.distinct(EmbeddingRow.document_id)))
        )
        return EmbeddingStats(
            total_vectors=total_result.scalar() or 0,
            total_documents=docs_result.scalar() or 0,
        )

"""
Chunk Store

Persistence of Chunk records, bound to one session.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import select, delete, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ChunkRow
from ..chunking.models import Chunk
from ..embeddings.models import ChunkStats

# Keeps each statement well under SQLite's bound-parameter limit
UPSERT_BATCH_SIZE = 100


class ChunkStore:
    """
    Chunk persistence for a single unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save_chunks(self, chunks: Sequence[Chunk]) -> int:
        """
        Insert or replace chunks by id.

        Returns
        -------
        int
            Number of chunks written.
        """
        if not chunks:
            return 0

        for start in range(0, len(chunks), UPSERT_BATCH_SIZE):
            batch = chunks[start : start + UPSERT_BATCH_SIZE]
            stmt = sqlite_insert(ChunkRow).values(
                [
                    {
                        "id": c.id,
                        "document_id": c.document_id,
                        "chunk_index": c.chunk_index,
                        "content": c.content,
                        "start_offset": c.start_offset,
                        "end_offset": c.end_offset,
                    }
                    for c in batch
                ]
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[ChunkRow.id],
                set_={
                    "document_id": stmt.excluded.document_id,
                    "chunk_index": stmt.excluded.chunk_index,
                    "content": stmt.excluded.content,
                    "start_offset": stmt.excluded.start_offset,
                    "end_offset": stmt.excluded.end_offset,
                },
            )
            await self._session.execute(stmt)

        return len(chunks)

    async def get_document_chunks(self, document_id: str) -> List[Chunk]:
        """
        Return a document's chunks in chunk_index order.
        """
        result = await self._session.execute(
            select(ChunkRow)
            .where(ChunkRow.document_id == document_id)
            .order_by(ChunkRow.chunk_index)
        )
        return [Chunk.model_validate(row) for row in result.scalars().all()]

    async def get_first_chunk(self, document_id: str) -> Optional[Chunk]:
        result = await self._session.execute(
            select(ChunkRow)
            .where(ChunkRow.document_id == document_id)
            .order_by(ChunkRow.chunk_index)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return Chunk.model_validate(row) if row is not None else None

    async def delete_document_chunks(self, document_id: str) -> int:
        """
        Remove all chunks of a document (their embeddings cascade).

        Returns the number of deleted rows.
        """
        result = await self._session.execute(
            delete(ChunkRow).where(ChunkRow.document_id == document_id)
        )
        return result.rowcount

    async def get_stats(self) -> ChunkStats:
        total_result = await self._session.execute(
            select(func.count()).select_from(ChunkRow)
        )
        docs_result = await self._session.execute(
            select(func.count(func.distinct(ChunkRow.document_id)))
        )
        return ChunkStats(
            total_chunks=total_result.scalar() or 0,
            total_documents=docs_result.scalar() or 0,
        )

"""
SQLAlchemy Models

Defines the database schema for:
- Documents and their extracted text
- Chunks (character ranges of a document's text)
- Embeddings (one float32 vector per chunk, stored as a BLOB)

Every child table references its owner with ON DELETE CASCADE, so deleting a
document removes its content, chunks and embeddings in the same statement.
SQLite only honours these constraints with `PRAGMA foreign_keys=ON`, which
session.py sets on every new connection.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import (
    String,
    Integer,
    Text,
    LargeBinary,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Document Models
# ---------------------------------------------------------------------

class Document(Base):
    """
    An uploaded document's metadata.
    """
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    doc_type: Mapped[str] = mapped_column(String(16), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # RFC 3339 text; parsed leniently on read
    uploaded_at: Mapped[str] = mapped_column(Text, nullable=False)
    path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    content: Mapped[Optional["DocumentContent"]] = relationship(
        "DocumentContent",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )

    chunks: Mapped[List["ChunkRow"]] = relationship(
        "ChunkRow",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChunkRow.chunk_index",
    )


class DocumentContent(Base):
    """
    Extracted text of a document, kept so chunks can be regenerated
    without re-parsing the source file.
    """
    __tablename__ = "document_content"

    document_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("documents.id", ondelete="CASCADE"),
        primary_key=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    document: Mapped["Document"] = relationship("Document", back_populates="content")


# ---------------------------------------------------------------------
# Chunk Model
# ---------------------------------------------------------------------

class ChunkRow(Base):
    """
    A chunk of a document's trimmed text.
    """
    __tablename__ = "chunks"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    document_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    start_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    end_offset: Mapped[int] = mapped_column(Integer, nullable=False)

    document: Mapped["Document"] = relationship("Document", back_populates="chunks")

    __table_args__ = (
        Index("idx_chunks_document_id", "document_id"),
    )


# ---------------------------------------------------------------------
# Embedding Model
# ---------------------------------------------------------------------

class EmbeddingRow(Base):
    """
    Vector embedding for one chunk.

    `embedding` holds 4 * D bytes of little-endian float32 (see
    embeddings/codec.py).
    """
    __tablename__ = "embeddings"

    chunk_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("chunks.id", ondelete="CASCADE"),
        primary_key=True,
    )
    document_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    __table_args__ = (
        Index("idx_embeddings_document_id", "document_id"),
    )

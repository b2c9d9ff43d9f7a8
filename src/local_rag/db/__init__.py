"""
Database Package

Provides SQLAlchemy async session management, model definitions, and the
document, chunk and vector stores backed by SQLite.
"""

from .session import Database, create_engine
from .models import Base, Document, DocumentContent, ChunkRow, EmbeddingRow
from .document_store import DocumentStore
from .chunk_store import ChunkStore
from .vector_store import VectorStore

__all__ = [
    "Database",
    "create_engine",
    "Base",
    "Document",
    "DocumentContent",
    "ChunkRow",
    "EmbeddingRow",
    "DocumentStore",
    "ChunkStore",
    "VectorStore",
]

"""
Chunking Package

Character-addressed, boundary-aware text chunking.
"""

from .models import Chunk, ChunkConfig, make_chunk_id
from .chunker import chunk_text, find_break_point

__all__ = [
    "Chunk",
    "ChunkConfig",
    "make_chunk_id",
    "chunk_text",
    "find_break_point",
]

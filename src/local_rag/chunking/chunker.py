"""
Text Chunker

Splits a document's extracted text into overlapping, character-addressed
chunks suitable for embedding and retrieval.

Properties
----------
- Pure and deterministic: identical input always yields identical chunks
- Total: never raises, including for degenerate configuration
- Character-safe: offsets are code-point indices, so multi-byte text
  (accents, symbols, emoji, CJK) can never be cut inside a character
- Boundary-aware: prefers paragraph, then sentence, then word boundaries
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .models import Chunk, ChunkConfig, make_chunk_id

logger = logging.getLogger("rag.chunker")

# How far back from a tentative end we look for a natural break point.
BREAK_SEARCH_WINDOW = 200

SENTENCE_TERMINATORS = frozenset(".!?")


# ---------------------------------------------------------------------
# Break Point Search
# ---------------------------------------------------------------------

def _find_paragraph_break(text: str, search_start: int, end: int) -> Optional[int]:
    """
    Scan backwards for two newlines separated only by whitespace.

    Returns the index just after the later newline.
    """
    later_newline: Optional[int] = None

    for i in range(end - 1, search_start - 1, -1):
        c = text[i]
        if c == "\n":
            if later_newline is not None:
                return later_newline + 1
            later_newline = i
        elif not c.isspace():
            later_newline = None

    return None


def _find_sentence_break(text: str, search_start: int, end: int) -> Optional[int]:
    """
    Scan backwards for a terminator immediately followed by whitespace.

    Returns the index just after the terminator.
    """
    for i in range(end - 2, search_start - 1, -1):
        if text[i] in SENTENCE_TERMINATORS and text[i + 1].isspace():
            return i + 1

    return None


def _find_word_break(text: str, search_start: int, end: int) -> Optional[int]:
    """
    Scan backwards for any whitespace character.

    Returns the index just after it.
    """
    for i in range(end - 1, search_start - 1, -1):
        if text[i].isspace():
            return i + 1

    return None


def find_break_point(text: str, start: int, end: int) -> int:
    """
    Choose where a chunk spanning `[start, end)` should actually end.

    The result is always in `(start, end]`; `end` itself is returned when no
    natural boundary exists in the search window (a mid-token cut).
    """
    window = min(BREAK_SEARCH_WINDOW, end - start)
    search_start = end - window

    for finder in (_find_paragraph_break, _find_sentence_break, _find_word_break):
        found = finder(text, search_start, end)
        if found is not None:
            return found

    return end


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def chunk_text(
    document_id: str,
    text: str,
    config: Optional[ChunkConfig] = None,
) -> List[Chunk]:
    """
    Split document text into overlapping chunks.

    Parameters
    ----------
    document_id : str
        Owning document; every chunk carries it and derives its id from it.

    text : str
        Extracted document text. It is trimmed before chunking and all
        offsets refer to the trimmed text.

    config : Optional[ChunkConfig]
        Chunk size and overlap in characters. Defaults to ChunkConfig().

    Returns
    -------
    List[Chunk]
        Chunks in document order with dense 0-based chunk_index values.
        Empty for empty or whitespace-only text.
    """
    config = config or ChunkConfig()
    text = text.strip()

    if not text:
        return []

    total_chars = len(text)

    if total_chars <= config.chunk_size:
        return [
            Chunk(
                id=make_chunk_id(document_id, 0),
                document_id=document_id,
                chunk_index=0,
                content=text,
                start_offset=0,
                end_offset=total_chars,
            )
        ]

    chunks: List[Chunk] = []
    step = config.step
    start = 0

    while start < total_chars:
        end = min(start + config.chunk_size, total_chars)

        if end < total_chars:
            end = find_break_point(text, start, end)

        content = text[start:end].strip()

        if content:
            chunk_index = len(chunks)
            chunks.append(
                Chunk(
                    id=make_chunk_id(document_id, chunk_index),
                    document_id=document_id,
                    chunk_index=chunk_index,
                    content=content,
                    start_offset=start,
                    end_offset=end,
                )
            )

        start += step

    logger.debug(
        "Chunked document_id=%s chars=%d chunk_size=%d overlap=%d -> %d chunks",
        document_id,
        total_chars,
        config.chunk_size,
        config.overlap,
        len(chunks),
    )

    return chunks

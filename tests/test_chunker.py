"""
Chunker Tests

Covers:
- Worked examples (single chunk, sentence-aware multi chunk)
- Break point priority (paragraph > sentence > word > hard cut)
- Offset/content consistency, including multi-byte text
- Coverage and termination for normal and degenerate configurations
"""

import pytest
from pydantic import ValidationError

from local_rag.chunking import ChunkConfig, chunk_text, find_break_point, make_chunk_id

THREE_SENTENCES = (
    "This is the first sentence. This is the second sentence. "
    "This is the third sentence."
)


def assert_well_formed(chunks, text, document_id):
    trimmed = text.strip()
    for i, c in enumerate(chunks):
        assert c.chunk_index == i
        assert c.id == make_chunk_id(document_id, i)
        assert c.document_id == document_id
        assert c.content
        assert 0 <= c.start_offset < c.end_offset <= len(trimmed)
        assert c.content == trimmed[c.start_offset:c.end_offset].strip()


class TestChunkTextExamples:
    def test_small_text_is_single_chunk(self):
        chunks = chunk_text("doc", "Small text.", ChunkConfig(chunk_size=100, overlap=20))

        assert len(chunks) == 1
        chunk = chunks[0]
        assert chunk.content == "Small text."
        assert chunk.start_offset == 0
        assert chunk.end_offset == 11
        assert chunk.chunk_index == 0
        assert chunk.id == "doc-0"

    def test_three_sentences_split_on_sentence_boundary(self):
        chunks = chunk_text("doc-a", THREE_SENTENCES, ChunkConfig(chunk_size=50, overlap=10))

        assert len(chunks) > 1
        assert_well_formed(chunks, THREE_SENTENCES, "doc-a")

        first = chunks[0]
        assert first.content == "This is the first sentence."
        assert (first.start_offset, first.end_offset) == (0, 27)

        # Second chunk starts one step (chunk_size - overlap) later and runs to the end
        assert (chunks[1].start_offset, chunks[1].end_offset) == (40, 84)
        assert chunks[-1].end_offset == len(THREE_SENTENCES)

    def test_surrounding_whitespace_is_trimmed_before_offsets(self):
        chunks = chunk_text("doc", "  \n Small text.\t\n", ChunkConfig(chunk_size=100, overlap=20))

        assert len(chunks) == 1
        assert chunks[0].content == "Small text."
        assert (chunks[0].start_offset, chunks[0].end_offset) == (0, 11)


class TestChunkTextEdgeCases:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t \n"])
    def test_empty_or_blank_text_yields_no_chunks(self, text):
        assert chunk_text("doc", text) == []

    def test_multibyte_offsets_are_character_indices(self):
        text = ("café naïve résumé 日本語のテキスト 🚀✨ " * 40).strip()
        chunks = chunk_text("doc", text, ChunkConfig(chunk_size=37, overlap=7))

        assert len(chunks) > 1
        assert_well_formed(chunks, text, "doc")
        for c in chunks:
            assert c.content in text
            assert len(c.content) <= 37

    def test_default_config_covers_text_without_gaps(self):
        text = " ".join(f"word{i}" for i in range(3000))
        chunks = chunk_text("doc", text)

        assert len(chunks) > 1
        assert_well_formed(chunks, text, "doc")
        assert chunks[0].start_offset == 0
        assert chunks[-1].end_offset == len(text)
        for prev, nxt in zip(chunks, chunks[1:]):
            assert nxt.start_offset <= prev.end_offset
            assert len(prev.content) <= 1000

    @pytest.mark.parametrize(
        "size,overlap",
        [(10, 10), (10, 25), (1, 0), (1, 5), (2, 1)],
    )
    def test_degenerate_config_terminates(self, size, overlap):
        text = "abc defgh ijk. lmnop\n\nqrs tuv wxyz"
        chunks = chunk_text("doc", text, ChunkConfig(chunk_size=size, overlap=overlap))

        assert chunks
        assert_well_formed(chunks, text, "doc")

    def test_chunking_is_deterministic(self):
        text = " ".join(f"token{i}." for i in range(500))
        config = ChunkConfig(chunk_size=120, overlap=30)

        assert chunk_text("doc", text, config) == chunk_text("doc", text, config)

    def test_zero_chunk_size_is_rejected(self):
        with pytest.raises(ValidationError):
            ChunkConfig(chunk_size=0, overlap=0)

    def test_step_falls_back_to_half_chunk(self):
        assert ChunkConfig(chunk_size=100, overlap=20).step == 80
        assert ChunkConfig(chunk_size=10, overlap=10).step == 5
        assert ChunkConfig(chunk_size=1, overlap=3).step == 1


class TestFindBreakPoint:
    def test_prefers_paragraph_break(self):
        text = "a" * 30 + "\n\n" + "b" * 30
        chunks = chunk_text("doc", text, ChunkConfig(chunk_size=40, overlap=0))

        assert chunks[0].content == "a" * 30
        assert chunks[0].end_offset == 32
        assert chunks[1].content == "b" * 22

    def test_paragraph_break_allows_whitespace_between_newlines(self):
        text = "first para.\n  \t\nsecond para words"
        assert find_break_point(text, 0, 25) == 16

    def test_sentence_break_before_word_break(self):
        assert find_break_point("One two. Three four", 0, 15) == 8

    def test_terminator_needs_following_whitespace(self):
        # "3.5" is not a sentence end
        assert find_break_point("Pi is 3.5 or so", 0, 12) == 10

    def test_word_break(self):
        assert find_break_point("alpha beta gamma", 0, 13) == 11

    def test_hard_cut_without_whitespace(self):
        assert find_break_point("x" * 50, 0, 30) == 30

    def test_search_window_is_bounded(self):
        text = "a " + "c" * 400
        assert find_break_point(text, 0, 300) == 300

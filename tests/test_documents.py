from datetime import datetime, timezone

import pytest

from local_rag.documents.models import DocumentRecord, DocumentType, parse_timestamp


class TestDocumentType:
    @pytest.mark.parametrize(
        "ext,expected",
        [
            ("pdf", DocumentType.PDF),
            (".PDF", DocumentType.PDF),
            ("txt", DocumentType.TXT),
            ("md", DocumentType.MD),
            ("markdown", DocumentType.MD),
            (".docx", None),
            ("", None),
        ],
    )
    def test_from_extension(self, ext, expected):
        assert DocumentType.from_extension(ext) == expected


class TestParseTimestamp:
    def test_rfc3339_with_z(self):
        parsed = parse_timestamp("2024-03-01T12:30:00Z")
        assert parsed == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    def test_rfc3339_with_offset(self):
        parsed = parse_timestamp("2024-03-01T12:30:00+00:00")
        assert parsed.tzinfo is not None
        assert parsed.year == 2024

    def test_naive_datetime_is_utc(self):
        parsed = parse_timestamp(datetime(2024, 1, 1))
        assert parsed.tzinfo == timezone.utc

    def test_garbage_falls_back_to_now(self):
        before = datetime.now(timezone.utc)
        parsed = parse_timestamp("not a timestamp")
        after = datetime.now(timezone.utc)

        assert before <= parsed <= after


class TestDocumentRecord:
    def test_from_stored_strings(self):
        doc = DocumentRecord(
            id="d1",
            name="notes.md",
            doc_type="md",
            size=10,
            uploaded_at="2024-03-01T12:30:00Z",
        )
        assert doc.doc_type is DocumentType.MD
        assert doc.uploaded_at.year == 2024
        assert doc.path is None

    def test_unknown_stored_type_reads_as_text(self):
        doc = DocumentRecord(
            id="d1",
            name="x",
            doc_type="docx",
            uploaded_at="2024-03-01T12:30:00Z",
        )
        assert doc.doc_type is DocumentType.TXT

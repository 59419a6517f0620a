"""Unit tests for notesync.codec.wire."""

import base64

import pytest

from notesync.codec import (
    DocumentFormat,
    RichDocument,
    TextRun,
    decode,
    decode_strict,
    document_from_row,
    encode,
    from_wire,
    plain_text,
    sniff_format,
    to_wire,
)
from notesync.core.exceptions import DecodeError, EncodeError


@pytest.fixture
def styled_document() -> RichDocument:
    return RichDocument(runs=[
        TextRun(text="Packing list\n", bold=True, font_size=16),
        TextRun(text="passport, charger"),
    ])


class TestFormats:
    @pytest.mark.parametrize("fmt", [DocumentFormat.ARCHIVE, DocumentFormat.RTF])
    def test_wire_value_reads_back(self, styled_document, fmt):
        assert from_wire(to_wire(styled_document, fmt)) == styled_document

    def test_format_accepts_string(self, styled_document):
        assert sniff_format(encode(styled_document, "rtf")) is DocumentFormat.RTF
        assert sniff_format(encode(styled_document, "archive")) is DocumentFormat.ARCHIVE

    def test_default_write_format_is_archive(self, styled_document):
        assert sniff_format(encode(styled_document)) is DocumentFormat.ARCHIVE

    def test_unknown_format_name(self, styled_document):
        with pytest.raises(ValueError):
            encode(styled_document, "docx")

    def test_sniff_unknown(self):
        assert sniff_format(b"hello") is None


class TestForgivingDecode:
    def test_garbage_is_empty(self):
        assert decode(b"\x00\x01garbage") == RichDocument.empty()

    def test_truncated_archive_is_empty(self, styled_document):
        data = encode(styled_document)
        assert decode(data[:-4]).is_empty

    def test_none_is_empty(self):
        assert decode(None).is_empty
        assert from_wire(None).is_empty
        assert from_wire("").is_empty

    def test_bad_base64_is_empty(self):
        assert from_wire("not base64 !!").is_empty

    def test_base64_of_garbage_is_empty(self):
        assert from_wire(base64.b64encode(b"random bytes").decode()).is_empty

    def test_strict_decode_raises(self):
        with pytest.raises(DecodeError):
            decode_strict(b"random bytes")


class TestStrictEncode:
    def test_invalid_text_raises(self):
        document = RichDocument.model_construct(runs=[TextRun.model_construct(text="\udc80")])
        with pytest.raises(EncodeError):
            to_wire(document)


class TestDocumentFromRow:
    def test_prefers_rich_payload(self, styled_document):
        wire = to_wire(styled_document)
        assert document_from_row(wire, "ignored") == styled_document

    def test_falls_back_to_plain_text(self):
        document = document_from_row(None, "just text")
        assert document.plain_text() == "just text"

    def test_nothing_at_all(self):
        assert document_from_row("", None).is_empty


class TestPlainText:
    def test_projection(self, styled_document):
        assert plain_text(styled_document) == "Packing list\npassport, charger"

    def test_normalized_merges_runs(self):
        document = RichDocument(runs=[TextRun(text="a"), TextRun(text=""), TextRun(text="b")])
        assert document.normalized().runs == [TextRun(text="ab")]

"""Rich document model and codecs."""

from notesync.codec.document import RichDocument, TextRun
from notesync.codec.wire import (
    DocumentFormat,
    decode,
    decode_strict,
    document_from_row,
    encode,
    from_wire,
    plain_text,
    sniff_format,
    to_wire,
)

__all__ = [
    "DocumentFormat",
    "RichDocument",
    "TextRun",
    "decode",
    "decode_strict",
    "document_from_row",
    "encode",
    "from_wire",
    "plain_text",
    "sniff_format",
    "to_wire",
]

"""
Rich Document Codec.

Converts between RichDocument and bytes, and between bytes and the base64
string the remote store carries in its JSON rows.

Two byte encodings are understood and sniffed from their headers:

    ARCHIVE - portable archival format, used for every new write
    RTF     - legacy interchange format, still written on request and
              always readable so older rows keep rendering

Decoding is forgiving: corrupt or unknown data renders as an empty
document. Encoding is strict: a document that cannot be encoded raises
EncodeError rather than writing partial data.
"""

import base64
import binascii
from enum import Enum

from notesync.codec.archive import decode_archive, encode_archive, is_archive
from notesync.codec.document import RichDocument
from notesync.codec.rtf import decode_rtf, encode_rtf, is_rtf
from notesync.core.exceptions import DecodeError
from notesync.core.logging import get_logger

logger = get_logger(__name__)


class DocumentFormat(str, Enum):
    """Byte encodings of a rich document."""

    ARCHIVE = "archive"
    RTF = "rtf"


def sniff_format(data: bytes) -> DocumentFormat | None:
    """Detect the encoding of document bytes from their header."""
    if is_archive(data):
        return DocumentFormat.ARCHIVE
    if is_rtf(data):
        return DocumentFormat.RTF
    return None


def encode(document: RichDocument, fmt: DocumentFormat | str = DocumentFormat.ARCHIVE) -> bytes:
    """
    Encode a document.

    Raises:
        EncodeError: If the document cannot be represented in the format
    """
    fmt = DocumentFormat(fmt)
    if fmt is DocumentFormat.RTF:
        return encode_rtf(document)
    return encode_archive(document)


def decode_strict(data: bytes) -> RichDocument:
    """
    Decode document bytes in any supported format.

    Raises:
        DecodeError: If the format is unknown or the data is malformed
    """
    fmt = sniff_format(data)
    if fmt is DocumentFormat.ARCHIVE:
        return decode_archive(data)
    if fmt is DocumentFormat.RTF:
        return decode_rtf(data)
    raise DecodeError("Unknown document format")


def decode(data: bytes | None) -> RichDocument:
    """Decode document bytes, yielding an empty document on any failure."""
    if not data:
        return RichDocument.empty()
    try:
        return decode_strict(data)
    except DecodeError as e:
        logger.warning(
            "Document decode failed, using empty document",
            extra={"error": e.message, "size": len(data)},
        )
        return RichDocument.empty()


def plain_text(document: RichDocument) -> str:
    """Plain-text projection used for search and previews."""
    return document.plain_text()


def to_wire(document: RichDocument, fmt: DocumentFormat | str = DocumentFormat.ARCHIVE) -> str:
    """
    Base64 string of the encoded document, for JSON transport.

    Raises:
        EncodeError: If the document cannot be encoded
    """
    return base64.b64encode(encode(document, fmt)).decode("ascii")


def from_wire(value: str | None) -> RichDocument:
    """Decode a base64 wire value, yielding an empty document on any failure."""
    if not value:
        return RichDocument.empty()
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Document wire value is not base64", extra={"error": str(e)})
        return RichDocument.empty()
    return decode(data)


def document_from_row(wire_value: str | None, fallback_text: str | None) -> RichDocument:
    """
    Document carried by a remote row.

    Rows without a rich payload render their plain-text column instead.
    """
    if not wire_value:
        return RichDocument.from_plain_text(fallback_text)
    return from_wire(wire_value)

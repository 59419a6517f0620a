"""
Archive Format.

The portable archival encoding used for all new writes:

    b"NSDOC" | version byte | UTF-8 JSON of the document

Defaults are omitted from the JSON so plain runs stay small.
"""

from pydantic import ValidationError as PydanticValidationError

from notesync.codec.document import RichDocument
from notesync.core.exceptions import DecodeError, EncodeError

MAGIC = b"NSDOC"
VERSION = 1


def is_archive(data: bytes) -> bool:
    return data.startswith(MAGIC)


def encode_archive(document: RichDocument) -> bytes:
    """
    Encode a document in the archive format.

    Raises:
        EncodeError: If a run holds text that cannot be written as UTF-8
    """
    for position, run in enumerate(document.runs):
        try:
            run.text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError(f"Run {position} is not valid Unicode text: {e.reason}") from e
    payload = document.model_dump_json(exclude_defaults=True)
    return MAGIC + bytes([VERSION]) + payload.encode("utf-8")


def decode_archive(data: bytes) -> RichDocument:
    """
    Decode archive-format bytes.

    Raises:
        DecodeError: On a bad header, unknown version, or malformed payload
    """
    if not is_archive(data):
        raise DecodeError("Missing archive header")
    if len(data) <= len(MAGIC):
        raise DecodeError("Archive truncated before version byte")
    version = data[len(MAGIC)]
    if version != VERSION:
        raise DecodeError(f"Unsupported archive version {version}")
    try:
        return RichDocument.model_validate_json(data[len(MAGIC) + 1:])
    except PydanticValidationError as e:
        raise DecodeError(f"Malformed archive payload: {e.error_count()} error(s)") from e

# Wire-level parsing: Content-IDs, media types, multipart bodies, transfer encodings

from .content_id import content_id_from_reference, format_content_id, parse_content_id
from .media_type import escape_quotes, format_media_type, parse_media_type
from .multipart import (
    MultipartReader,
    MultipartWriter,
    PartWriter,
    RawPart,
    random_boundary,
    validate_boundary,
)
from .transfer_encoding import Base64Decoder, decode_part

__all__ = [
    "parse_content_id",
    "format_content_id",
    "content_id_from_reference",
    "parse_media_type",
    "format_media_type",
    "escape_quotes",
    "MultipartReader",
    "MultipartWriter",
    "PartWriter",
    "RawPart",
    "random_boundary",
    "validate_boundary",
    "Base64Decoder",
    "decode_part",
]

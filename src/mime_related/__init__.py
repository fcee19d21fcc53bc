"""
mime-related: reader and writer for RFC 2387 multipart/related compound objects.
"""

from .errors import (
    CorruptContent,
    DuplicateRoot,
    EndOfParts,
    ErrorCode,
    InvalidBoundary,
    InvalidContentId,
    InvalidMediaType,
    MultipartError,
    RelatedError,
    RootAlreadyExists,
    TypeMismatch,
)
from .models import CompoundObject, ObjectPart
from .parsing import format_content_id, parse_content_id
from .related import Part, RelatedReader, RelatedWriter, read_related
from .version import DEFAULT_MEDIA_TYPE, __version__

__all__ = [
    "RelatedReader",
    "RelatedWriter",
    "Part",
    "read_related",
    "CompoundObject",
    "ObjectPart",
    "parse_content_id",
    "format_content_id",
    "DEFAULT_MEDIA_TYPE",
    "ErrorCode",
    "RelatedError",
    "InvalidContentId",
    "InvalidMediaType",
    "InvalidBoundary",
    "DuplicateRoot",
    "RootAlreadyExists",
    "TypeMismatch",
    "MultipartError",
    "CorruptContent",
    "EndOfParts",
    "__version__",
]

"""Error codes and exception types for multipart/related processing.

``ErrorCode`` lists every code the library can report.  Each exception class
carries one of these codes so callers can branch on ``exc.code`` without
matching messages.  Every failure derives from ``RelatedError``, itself a
``ValueError``, since it stems from malformed input or misuse.  ``EndOfParts``
marks normal termination and is a plain ``Exception``.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for mime_related.

    Fatal codes use an ``E_`` prefix; warnings use ``W_``.
    Values equal their names for stable logging strings.
    """

    # Content-ID / media type / boundary validation
    E_INVALID_CONTENT_ID = "E_INVALID_CONTENT_ID"
    E_INVALID_MEDIA_TYPE = "E_INVALID_MEDIA_TYPE"
    E_INVALID_BOUNDARY = "E_INVALID_BOUNDARY"

    # Compound object structure
    E_DUPLICATE_ROOT = "E_DUPLICATE_ROOT"
    E_ROOT_ALREADY_EXISTS = "E_ROOT_ALREADY_EXISTS"
    E_TYPE_MISMATCH = "E_TYPE_MISMATCH"

    # Wire format
    E_MALFORMED_MULTIPART = "E_MALFORMED_MULTIPART"
    E_CORRUPT_CONTENT = "E_CORRUPT_CONTENT"

    # Sentinels (non-fatal)
    W_END_OF_PARTS = "W_END_OF_PARTS"


class RelatedError(ValueError):
    """Base class for all multipart/related errors."""

    code: ErrorCode

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code.value)
        self.message = message or self.code.value


class InvalidContentId(RelatedError):
    """A Content-ID could not be formatted as an RFC 5322 angle address."""

    code = ErrorCode.E_INVALID_CONTENT_ID


class InvalidMediaType(RelatedError):
    """A media type string failed to parse."""

    code = ErrorCode.E_INVALID_MEDIA_TYPE


class InvalidBoundary(RelatedError):
    """A boundary is missing, malformed, or set too late."""

    code = ErrorCode.E_INVALID_BOUNDARY


class DuplicateRoot(RelatedError):
    """A second part matched the start Content-ID of the compound object."""

    code = ErrorCode.E_DUPLICATE_ROOT


class RootAlreadyExists(RelatedError):
    """``create_root()`` was called twice on the same writer."""

    code = ErrorCode.E_ROOT_ALREADY_EXISTS


class TypeMismatch(RelatedError):
    """The object's media type disagrees with the root part's media type."""

    code = ErrorCode.E_TYPE_MISMATCH


class MultipartError(RelatedError):
    """The boundary-delimited body is malformed or misused."""

    code = ErrorCode.E_MALFORMED_MULTIPART


class CorruptContent(RelatedError):
    """A transfer-encoded body could not be decoded."""

    code = ErrorCode.E_CORRUPT_CONTENT


class EndOfParts(Exception):
    """No parts remain. Normal termination, not a failure."""

    code = ErrorCode.W_END_OF_PARTS

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code.value)
        self.message = message or self.code.value

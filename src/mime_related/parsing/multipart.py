"""
Boundary-delimited multipart bodies (RFC 2046 section 5.1).

``MultipartReader`` splits a binary stream into raw parts, each exposing its
header block as an ``email.message.Message`` and its body as a readable
stream. ``MultipartWriter`` performs the reverse. Neither knows anything about
root parts or Content-IDs; that logic lives in ``mime_related.related``.
"""

import io
import secrets
from email.message import Message
from email.parser import BytesHeaderParser
from email.policy import compat32
from typing import BinaryIO, Optional

import structlog

from ..errors import InvalidBoundary, MultipartError

logger = structlog.get_logger(__name__)

MAX_BOUNDARY_LENGTH = 69

# RFC 2046 section 5.1.1 bchars, minus space which is handled separately
_BOUNDARY_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789'()+_,-./:=?"
)

# Longest line read in one go; longer lines are consumed in slices
_MAX_LINE = 8192

_LINE_ENDINGS = (b"\r\n", b"\n")


def validate_boundary(boundary: str) -> str:
    """
    Check a user-supplied boundary.

    Args:
        boundary: Candidate boundary

    Returns:
        The boundary, unchanged

    Raises:
        InvalidBoundary: If it is not 1-69 characters of the allowed set
    """
    if not 1 <= len(boundary) <= MAX_BOUNDARY_LENGTH:
        raise InvalidBoundary(
            f"Boundary must be 1-{MAX_BOUNDARY_LENGTH} characters, got {len(boundary)}"
        )

    last = len(boundary) - 1
    for i, char in enumerate(boundary):
        if char in _BOUNDARY_CHARS:
            continue
        if char == " " and i != last:
            continue
        raise InvalidBoundary(f"Invalid boundary character {char!r}")
    return boundary


def random_boundary() -> str:
    """Generate a random 60-character hexadecimal boundary."""
    return secrets.token_hex(30)


def _split_line_ending(line: bytes):
    for ending in _LINE_ENDINGS:
        if line.endswith(ending):
            return line[: -len(ending)], ending
    return line, b""


class RawPart(io.RawIOBase):
    """
    A single boundary-delimited part.

    The body is read line by line; the line break preceding a delimiter
    belongs to the delimiter and is never returned as content. The part is
    only readable until its reader advances to the next part.
    """

    def __init__(self, reader: "MultipartReader", header: Message):
        super().__init__()
        self.header = header
        self._reader = reader
        self._pending = b""
        self._held_ending = b""
        self._at_line_start = True
        self._finished = False

    def readable(self) -> bool:
        return True

    def _fill(self) -> None:
        line = self._reader._readline()
        if not line:
            raise MultipartError("Unexpected end of input inside a part")

        if self._at_line_start:
            kind = self._reader._delimiter_kind(line)
            if kind is not None:
                self._finished = True
                self._reader._on_delimiter(kind)
                return

        content, ending = _split_line_ending(line)
        self._pending += self._held_ending + content
        self._held_ending = ending
        self._at_line_start = bool(ending)

    def readinto(self, buffer) -> int:
        while not self._pending and not self._finished:
            self._fill()

        count = min(len(buffer), len(self._pending))
        buffer[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count

    def drain(self) -> None:
        """Consume the rest of the body without returning it."""
        while not self._finished:
            self._pending = b""
            self._fill()
        self._pending = b""


class MultipartReader:
    """Iterate over the raw parts of a multipart body."""

    def __init__(self, stream: BinaryIO, boundary: str):
        if not boundary:
            raise InvalidBoundary("Boundary is required to read a multipart body")
        self._stream = stream
        self.boundary = boundary
        self._dash_boundary = b"--" + boundary.encode("utf-8")
        self._current: Optional[RawPart] = None
        self._started = False
        self._closed = False
        self.parts_read = 0

    def _readline(self) -> bytes:
        return self._stream.readline(_MAX_LINE)

    def _delimiter_kind(self, line: bytes) -> Optional[str]:
        """
        Classify a line as a delimiter.

        Returns:
            "part" for ``--boundary``, "close" for ``--boundary--``,
            None for any other line. Trailing whitespace is tolerated.
        """
        if not line.startswith(self._dash_boundary):
            return None
        rest = line[len(self._dash_boundary):].rstrip(b" \t\r\n")
        if rest == b"":
            return "part"
        if rest == b"--":
            return "close"
        return None

    def _on_delimiter(self, kind: str) -> None:
        if kind == "close":
            self._closed = True

    def _read_header(self) -> Message:
        lines = []
        while True:
            line = self._readline()
            if not line:
                raise MultipartError("Unexpected end of input inside part headers")
            if line in _LINE_ENDINGS:
                break
            lines.append(line)
        return BytesHeaderParser(policy=compat32).parsebytes(b"".join(lines))

    def _skip_preamble(self) -> None:
        while True:
            line = self._readline()
            if not line:
                raise MultipartError(
                    f"No boundary {self.boundary!r} found in multipart body"
                )
            kind = self._delimiter_kind(line)
            if kind is not None:
                self._on_delimiter(kind)
                return

    def next_part(self) -> Optional[RawPart]:
        """
        Advance to the next part.

        Any unread content of the current part is discarded.

        Returns:
            The next RawPart, or None when the close delimiter was reached

        Raises:
            MultipartError: If the input ends prematurely
        """
        if self._current is not None:
            self._current.drain()
            self._current = None

        if not self._started:
            self._started = True
            self._skip_preamble()

        if self._closed:
            return None

        part = RawPart(self, self._read_header())
        self._current = part
        self.parts_read += 1
        logger.debug("raw_part_started", index=self.parts_read)
        return part


class PartWriter:
    """Writable body of the part most recently created by a MultipartWriter."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise MultipartError("Cannot write to a finished part")
        self._stream.write(data)
        return len(data)


class MultipartWriter:
    """Write a multipart body part by part."""

    def __init__(self, stream: BinaryIO, boundary: Optional[str] = None):
        self._stream = stream
        self._boundary = validate_boundary(boundary) if boundary else random_boundary()
        self._last_part: Optional[PartWriter] = None
        self._closed = False

    @property
    def boundary(self) -> str:
        return self._boundary

    def set_boundary(self, boundary: str) -> None:
        """
        Override the random boundary.

        Raises:
            InvalidBoundary: If a part was already written or the value is invalid
        """
        if self._last_part is not None:
            raise InvalidBoundary("Boundary must be set before any part is created")
        self._boundary = validate_boundary(boundary)

    def create_part(self, header: Message) -> PartWriter:
        """
        Start a new part with the given headers.

        Returns:
            Writer for the part body; valid until the next part is created
        """
        if self._closed:
            raise MultipartError("Cannot create a part after close")

        if self._last_part is not None:
            self._last_part.closed = True
            delimiter = f"\r\n--{self._boundary}\r\n"
        else:
            delimiter = f"--{self._boundary}\r\n"

        block = [delimiter]
        for name, value in header.items():
            block.append(f"{name}: {value}\r\n")
        block.append("\r\n")
        self._stream.write("".join(block).encode("utf-8"))

        self._last_part = PartWriter(self._stream)
        return self._last_part

    def close(self) -> None:
        """Write the close delimiter. Further calls do nothing."""
        if self._closed:
            return
        if self._last_part is not None:
            self._last_part.closed = True
            self._stream.write(f"\r\n--{self._boundary}--\r\n".encode("ascii"))
        else:
            self._stream.write(f"--{self._boundary}--\r\n".encode("ascii"))
        self._closed = True

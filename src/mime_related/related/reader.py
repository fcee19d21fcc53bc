"""
Reader for multipart/related compound objects (RFC 2387).

Parts are pulled one at a time from a ``MultipartReader``. Each part is
checked against the object's ``start`` parameter to decide whether it is the
root, and its body is transparently decoded according to its
Content-Transfer-Encoding.
"""

import io
from dataclasses import dataclass
from email.message import Message
from typing import BinaryIO, Iterator, Mapping

import structlog

from ..errors import DuplicateRoot, EndOfParts, InvalidBoundary, InvalidMediaType
from ..models.compound_object import CompoundObject, ObjectPart
from ..parsing.content_id import parse_content_id
from ..parsing.media_type import parse_media_type
from ..parsing.multipart import MultipartReader
from ..parsing.transfer_encoding import decode_part

logger = structlog.get_logger(__name__)

RELATED_MEDIA_TYPE = "multipart/related"


@dataclass
class ReaderState:
    """Mutable root-tracking state owned by a single RelatedReader."""

    expected_root_id: str = ""
    root_assigned: bool = False


class Part(io.RawIOBase):
    """
    A part of a multipart/related body, in streaming mode.

    The content is only readable until the owning reader advances with
    ``next_part()``. Use ``RelatedReader.read_object()`` when the content
    must outlive the iteration step.
    """

    def __init__(self, header: Message, root: bool, body: BinaryIO):
        super().__init__()
        self.header = header
        self.root = root
        self._body = body

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        data = self._body.read(len(buffer))
        count = len(data)
        buffer[:count] = data
        return count

    @property
    def content_id(self) -> str:
        return parse_content_id(self.header.get("Content-ID"))

    def to_object_part(self) -> ObjectPart:
        """Buffer the remaining content into an ObjectPart."""
        return ObjectPart(
            headers=dict(self.header.items()),
            content_id=self.content_id,
            root=self.root,
            content=self.readall(),
        )


class RelatedReader:
    """
    Iterate over the parts of a multipart/related body.

    Args:
        stream: Binary stream positioned at the start of the multipart body
        params: Parameters of the object's Content-Type header
            (``boundary`` is required; ``type``, ``start`` and ``start-info``
            are optional)
    """

    def __init__(self, stream: BinaryIO, params: Mapping[str, str]):
        boundary = params.get("boundary", "")
        if not boundary:
            raise InvalidBoundary("multipart/related body requires a boundary parameter")

        self.boundary = boundary
        self.media_type = params.get("type", "")
        self.start = parse_content_id(params.get("start"))
        self.start_info = params.get("start-info", "")
        self.state = ReaderState(expected_root_id=self.start)
        self._parts = MultipartReader(stream, boundary)

    @classmethod
    def from_content_type(cls, stream: BinaryIO, content_type: str) -> "RelatedReader":
        """
        Build a reader from a full Content-Type header value.

        Raises:
            InvalidMediaType: If the value is malformed or not multipart/related
            InvalidBoundary: If the boundary parameter is missing
        """
        media_type, params = parse_media_type(content_type)
        if media_type != RELATED_MEDIA_TYPE:
            raise InvalidMediaType(
                f"Expected {RELATED_MEDIA_TYPE}, got {media_type!r}"
            )
        return cls(stream, params)

    def _assign_root(self, content_id: str) -> bool:
        state = self.state
        if state.expected_root_id and content_id == state.expected_root_id:
            if state.root_assigned:
                logger.warning("duplicate_root_detected", content_id=content_id)
                raise DuplicateRoot(f"Duplicate root part with Content-ID {content_id!r}")
            state.root_assigned = True
            return True

        if not state.expected_root_id and not state.root_assigned:
            state.root_assigned = True
            return True

        return False

    def next_part(self) -> Part:
        """
        Return the next part.

        Raises:
            EndOfParts: When no parts remain (normal termination)
            DuplicateRoot: If a second part matches the start Content-ID
            MultipartError: If the body is malformed
        """
        raw = self._parts.next_part()
        if raw is None:
            raise EndOfParts()

        header = raw.header
        content_id = parse_content_id(header.get("Content-ID"))
        root = self._assign_root(content_id)
        if root:
            logger.debug("root_part_assigned", content_id=content_id)

        return Part(header, root, decode_part(header, raw))

    def __iter__(self) -> Iterator[Part]:
        while True:
            try:
                yield self.next_part()
            except EndOfParts:
                return

    def read_object(self) -> CompoundObject:
        """
        Read every remaining part into a CompoundObject.

        Each part's content is buffered eagerly. The root part is moved to
        the front; other parts keep their wire order.

        Returns:
            The compound object with the root at index 0

        Raises:
            DuplicateRoot: If a second part matches the start Content-ID
            MultipartError: If the body is malformed
        """
        compound = CompoundObject(
            media_type=self.media_type,
            start=self.start or None,
            start_info=self.start_info or None,
        )
        for part in self:
            compound.add_part(part.to_object_part())

        logger.info(
            "related_object_read",
            parts_count=len(compound.parts),
            has_root=compound.root is not None,
            media_type=self.media_type,
        )
        return compound


def read_related(stream: BinaryIO, content_type: str) -> CompoundObject:
    """
    Parse a complete multipart/related body.

    Args:
        stream: Binary stream positioned at the start of the body
        content_type: The body's Content-Type header value

    Returns:
        CompoundObject with the root part first
    """
    return RelatedReader.from_content_type(stream, content_type).read_object()

"""
Writer for multipart/related compound objects (RFC 2387).

Wraps a ``MultipartWriter`` and keeps the object-level parameters (``type``,
``start``, ``start-info``) consistent with the parts actually written. The
object's declared media type must match the root part's media type when the
writer is closed.
"""

from dataclasses import dataclass
from email.message import Message
from typing import BinaryIO, Mapping, Optional, Union

import structlog

from ..errors import RootAlreadyExists, TypeMismatch
from ..parsing.content_id import format_content_id
from ..parsing.media_type import escape_quotes, format_media_type, parse_media_type
from ..parsing.multipart import MultipartWriter, PartWriter
from ..version import DEFAULT_MEDIA_TYPE

logger = structlog.get_logger(__name__)

HeaderLike = Union[Message, Mapping[str, str]]


@dataclass
class WriterState:
    """Object-level state owned by a single RelatedWriter."""

    media_type: str = ""
    start: str = ""  # Wire form, e.g. "<a@b.c>"
    start_info: str = ""
    root_media_type: str = ""
    first_part_written: bool = False  # Lets the first part set the type without a root
    root_part_written: bool = False  # Prevents multiple create_root() calls


def _copy_header(header: Optional[HeaderLike]) -> Message:
    copy = Message()
    if header is None:
        return copy
    for name, value in header.items():
        _set_header(copy, name, value)
    return copy


def _set_header(header: Message, name: str, value: str) -> None:
    """Replace every occurrence of ``name`` with a single value."""
    del header[name]
    header[name] = value


class RelatedWriter:
    """
    Generate a multipart/related body.

    Parts must be written strictly in order: create a part, write its body,
    then create the next one.

    Args:
        stream: Binary stream receiving the body
        boundary: Explicit boundary; a random one is generated when omitted
    """

    def __init__(self, stream: BinaryIO, boundary: Optional[str] = None):
        self._writer = MultipartWriter(stream, boundary)
        self.state = WriterState()

    def __enter__(self) -> "RelatedWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    @property
    def boundary(self) -> str:
        return self._writer.boundary

    def set_boundary(self, boundary: str) -> None:
        """
        Override the random boundary. Must be called before any part is created.

        Raises:
            InvalidBoundary: If the boundary is invalid or parts exist already
        """
        self._writer.set_boundary(boundary)

    def set_start(self, content_id: str) -> None:
        """
        Set the Content-ID of the compound object's root.

        Raises:
            InvalidContentId: If the id is empty or not a valid address
        """
        self.state.start = format_content_id(content_id)

    def set_type(self, media_type: str) -> None:
        """
        Set the media type of the compound object.

        Raises:
            InvalidMediaType: If the media type cannot be parsed
        """
        parse_media_type(media_type)
        self.state.media_type = media_type

    def set_start_info(self, info: str) -> None:
        self.state.start_info = info

    def create_root(
        self,
        content_id: str = "",
        media_type: str = "",
        header: Optional[HeaderLike] = None,
    ) -> PartWriter:
        """
        Create the root part.

        Content-Type and Content-ID supplied in ``header`` are overridden.

        Args:
            content_id: Canonical Content-ID; becomes the object's start
            media_type: Root media type, defaults to text/plain; charset=utf-8
            header: Additional headers (e.g. Content-Transfer-Encoding)

        Returns:
            Writer for the root body

        Raises:
            RootAlreadyExists: If a root part was already created
            InvalidMediaType: If media_type cannot be parsed
            InvalidContentId: If content_id is not a valid address
        """
        if self.state.root_part_written:
            raise RootAlreadyExists("Root part already exists")

        media_type = media_type or DEFAULT_MEDIA_TYPE
        parse_media_type(media_type)
        wire_id = format_content_id(content_id) if content_id else ""

        part_header = _copy_header(header)
        _set_header(part_header, "Content-Type", media_type)
        if wire_id:
            _set_header(part_header, "Content-ID", wire_id)
        part = self._writer.create_part(part_header)

        self.state.media_type = media_type
        self.state.root_media_type = media_type
        if wire_id:
            self.state.start = wire_id
        self.state.first_part_written = True
        self.state.root_part_written = True

        logger.debug("root_part_created", content_id=content_id, media_type=media_type)
        return part

    def create_part(
        self,
        content_id: str = "",
        header: Optional[HeaderLike] = None,
    ) -> PartWriter:
        """
        Create a non-root part.

        The media type comes from the header's Content-Type and defaults to
        text/plain; charset=utf-8. When no root was created, the first part's
        media type becomes the object's media type.

        Returns:
            Writer for the part body

        Raises:
            InvalidMediaType: If the Content-Type cannot be parsed
            InvalidContentId: If content_id is not a valid address
        """
        part_header = _copy_header(header)
        media_type = part_header.get("Content-Type") or DEFAULT_MEDIA_TYPE
        parse_media_type(media_type)
        wire_id = format_content_id(content_id) if content_id else ""

        _set_header(part_header, "Content-Type", media_type)
        if wire_id:
            _set_header(part_header, "Content-ID", wire_id)
        part = self._writer.create_part(part_header)

        if not self.state.first_part_written:
            self.state.media_type = media_type
            self.state.root_media_type = media_type
            self.state.first_part_written = True

        logger.debug("part_created", content_id=content_id, media_type=media_type)
        return part

    def close(self) -> None:
        """
        Finish the body by writing the close delimiter.

        Safe to call more than once.

        Raises:
            TypeMismatch: If the object's media type differs from the root's
        """
        if self.state.media_type != self.state.root_media_type:
            logger.warning(
                "related_type_mismatch",
                media_type=self.state.media_type,
                root_media_type=self.state.root_media_type,
            )
            raise TypeMismatch(
                f"Object type {self.state.media_type!r} does not match "
                f"root type {self.state.root_media_type!r}"
            )

        self._writer.close()
        logger.debug("related_writer_closed", boundary=self.boundary)

    def form_data_content_type(self) -> str:
        """
        Build the Content-Type header value for this body.

        Returns:
            e.g. ``multipart/related; boundary=abc; start="<a@b.c>"; type="text/html"``
        """
        params = {"boundary": self.boundary}
        if self.state.start:
            params["start"] = self.state.start
        if self.state.media_type:
            params["type"] = escape_quotes(self.state.media_type)
        if self.state.start_info:
            params["start-info"] = escape_quotes(self.state.start_info)

        return format_media_type("multipart/related", params)

"""
Compound object model - aggregate representation of a multipart/related body.

This module defines the fully buffered form produced by
``RelatedReader.read_object()``: every part's content is held in memory, so
its lifetime is independent of the underlying stream.
"""

import io
from typing import Dict, List, Optional

import charset_normalizer
from pydantic import BaseModel, Field

from ..errors import InvalidMediaType
from ..parsing.content_id import content_id_from_reference
from ..parsing.media_type import parse_media_type
from ..version import DEFAULT_MEDIA_TYPE


class ObjectPart(BaseModel):
    """A single buffered part of a compound object."""

    headers: Dict[str, str] = Field(
        default_factory=dict, description="Part headers (transfer encoding already removed)"
    )
    content_id: str = Field("", description="Canonical Content-ID, empty if absent or malformed")
    root: bool = Field(False, description="Whether this is the compound object's root")
    content: bytes = Field(b"", description="Decoded body")

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a header, ignoring case."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    @property
    def content_type(self) -> str:
        return self.get_header("Content-Type") or DEFAULT_MEDIA_TYPE

    @property
    def charset(self) -> Optional[str]:
        try:
            _, params = parse_media_type(self.content_type)
        except InvalidMediaType:
            return None
        return params.get("charset")

    def open(self) -> io.BytesIO:
        """Return an independent reader over the content."""
        return io.BytesIO(self.content)

    def text(self) -> str:
        """
        Decode the content as text.

        Tries the declared charset first, then charset detection, then UTF-8
        with replacement characters.

        Returns:
            Decoded string content
        """
        charset = self.charset
        if charset:
            try:
                return self.content.decode(charset)
            except (UnicodeDecodeError, LookupError):
                pass

        # Try charset detection
        detected = charset_normalizer.from_bytes(self.content).best()
        if detected:
            return str(detected)

        # Final fallback
        return self.content.decode("utf-8", errors="replace")


class CompoundObject(BaseModel):
    """
    A parsed multipart/related compound object (RFC 2387).

    The root part, when present, is always at index 0. Non-root parts keep
    their wire order relative to each other.
    """

    media_type: str = Field("", description="Declared type of the whole object (type parameter)")
    start: Optional[str] = Field(None, description="Canonical Content-ID of the root part")
    start_info: Optional[str] = Field(None, description="start-info parameter, verbatim")
    parts: List[ObjectPart] = Field(default_factory=list, description="Parts, root first")

    @property
    def root(self) -> Optional[ObjectPart]:
        if self.parts and self.parts[0].root:
            return self.parts[0]
        return None

    def add_part(self, part: ObjectPart) -> None:
        """
        Append a part, splicing a root part to the front.

        ``[a, b] + root`` becomes ``[root, a, b]``.
        """
        if part.root:
            self.parts.insert(0, part)
        else:
            self.parts.append(part)

    def get_part(self, reference: str) -> Optional[ObjectPart]:
        """
        Find a part by Content-ID.

        Args:
            reference: ``<a@b>``, ``a@b`` or a ``cid:`` URL

        Returns:
            The matching part, or None
        """
        content_id = content_id_from_reference(reference)
        if not content_id:
            return None
        for part in self.parts:
            if part.content_id == content_id:
                return part
        return None

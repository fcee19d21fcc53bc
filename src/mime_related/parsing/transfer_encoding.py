"""
Content-Transfer-Encoding handling for part bodies.

Only base64 is decoded. Every other encoding (7bit, 8bit, binary,
quoted-printable) is passed through unchanged.
"""

import base64
import binascii
import io
from email.message import Message
from typing import BinaryIO, Optional

from ..config import settings
from ..errors import CorruptContent

TRANSFER_ENCODING_HEADER = "Content-Transfer-Encoding"

_WHITESPACE = b" \t\r\n\x0b\x0c"


class Base64Decoder(io.RawIOBase):
    """
    Streaming base64 decoder over a binary source.

    Line breaks and other whitespace in the encoded stream are ignored. Any
    other character outside the base64 alphabet, and any data after padding,
    raises CorruptContent.

    Encoded input is consumed in chunks, so arbitrarily large bodies decode
    in bounded memory.
    """

    def __init__(self, source: BinaryIO, chunk_size: Optional[int] = None):
        super().__init__()
        self._source = source
        self._chunk_size = chunk_size or settings.read_chunk_size
        self._encoded = b""  # Undecoded remainder, always shorter than a quantum
        self._decoded = b""
        self._eof = False
        self._padded = False

    def readable(self) -> bool:
        return True

    def _decode(self, data: bytes) -> bytes:
        try:
            decoded = base64.b64decode(data, validate=True)
        except binascii.Error as e:
            raise CorruptContent(f"Invalid base64 content: {e}") from e
        if data.endswith(b"="):
            self._padded = True
        return decoded

    def _fill(self) -> None:
        chunk = self._source.read(self._chunk_size)
        if not chunk:
            self._eof = True
            if self._encoded:
                # Leftover bytes that do not form a full quantum
                self._decoded += self._decode(self._encoded)
                self._encoded = b""
            return

        chunk = chunk.translate(None, _WHITESPACE)
        if chunk and self._padded:
            raise CorruptContent("Invalid base64 content: data after padding")
        self._encoded += chunk
        usable = len(self._encoded) - len(self._encoded) % 4
        if usable:
            self._decoded += self._decode(self._encoded[:usable])
            self._encoded = self._encoded[usable:]

    def readinto(self, buffer) -> int:
        while not self._decoded and not self._eof:
            self._fill()

        count = min(len(buffer), len(self._decoded))
        buffer[:count] = self._decoded[:count]
        self._decoded = self._decoded[count:]
        return count


def decode_part(header: Message, body: BinaryIO) -> BinaryIO:
    """
    Wrap a part body according to its Content-Transfer-Encoding.

    For ``base64`` (exact, case-sensitive match) the header is removed from
    ``header`` and the body is wrapped in a Base64Decoder. Any other value
    leaves both untouched.

    Args:
        header: Part headers, modified in place
        body: Raw part body

    Returns:
        Stream yielding the decoded content
    """
    if header.get(TRANSFER_ENCODING_HEADER) == "base64":
        del header[TRANSFER_ENCODING_HEADER]
        return Base64Decoder(body)

    return body

# multipart/related reader and writer

from .reader import Part, ReaderState, RelatedReader, read_related
from .writer import RelatedWriter, WriterState

__all__ = [
    "RelatedReader",
    "ReaderState",
    "Part",
    "read_related",
    "RelatedWriter",
    "WriterState",
]

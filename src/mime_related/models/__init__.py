# Data models for multipart/related compound objects

from .compound_object import CompoundObject, ObjectPart

__all__ = [
    "CompoundObject",
    "ObjectPart",
]

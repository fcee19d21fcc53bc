"""
Version constants for the multipart/related library.
"""

__version__ = "1.0.0"

# Default media type for parts that do not declare one (RFC 2045 section 5.2)
DEFAULT_MEDIA_TYPE = "text/plain; charset=utf-8"

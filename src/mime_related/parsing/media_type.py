"""
Media type parsing and formatting (RFC 2045 section 5.1).

Handles ``type/subtype; attribute=value`` strings with token and
quoted-string parameter values. Values that cannot travel in a quoted-string
(control characters, non-ASCII text) use the RFC 2231 extended form
``attribute*=utf-8''percent-encoded``. RFC 2231 continuations are not decoded.
"""

from typing import Dict, Mapping, Tuple
from urllib.parse import unquote_to_bytes

from ..errors import InvalidMediaType

# RFC 2045 section 5.1
TSPECIALS = frozenset('()<>@,;:\\"/[]?=')

# RFC 2231 section 7: attribute-char excludes these on top of tspecials
_EXTENDED_SPECIALS = frozenset("*'%")

_EXTENDED_CHARSETS = ("utf-8", "us-ascii")


def is_token_char(char: str) -> bool:
    """Check whether a character may appear in an RFC 2045 token."""
    return " " < char < "\x7f" and char not in TSPECIALS


def is_token(value: str) -> bool:
    """Check whether a string is a non-empty RFC 2045 token."""
    return bool(value) and all(is_token_char(c) for c in value)


def _consume_token(value: str) -> Tuple[str, str]:
    """Split a leading token off ``value``."""
    end = 0
    while end < len(value) and is_token_char(value[end]):
        end += 1
    return value[:end], value[end:]


def _consume_value(value: str) -> Tuple[str, str]:
    """
    Split a leading token or quoted-string off ``value``.

    Inside a quoted-string a backslash escapes the next character only when
    that character is a tspecial; otherwise the backslash is kept literally.

    Returns:
        Tuple of (unquoted value, rest). The value is "" on failure.
    """
    if not value.startswith('"'):
        return _consume_token(value)

    buffer = []
    i = 1
    while i < len(value):
        char = value[i]
        if char == '"':
            return "".join(buffer), value[i + 1:]
        if char == "\\" and i + 1 < len(value) and value[i + 1] in TSPECIALS:
            buffer.append(value[i + 1])
            i += 2
            continue
        if char in "\r\n":
            return "", value
        buffer.append(char)
        i += 1

    # Unterminated quoted-string
    return "", value


def _needs_extended(value: str) -> bool:
    return any((c < " " and c != "\t") or c >= "\x7f" for c in value)


def _encode_extended(value: str) -> str:
    """Encode a value as an RFC 2231 ``charset''text`` string."""
    pieces = ["utf-8''"]
    for byte in value.encode("utf-8"):
        char = chr(byte)
        if byte <= 0x20 or byte >= 0x7f or char in TSPECIALS or char in _EXTENDED_SPECIALS:
            pieces.append(f"%{byte:02X}")
        else:
            pieces.append(char)
    return "".join(pieces)


def _decode_extended(value: str) -> str:
    """
    Decode an RFC 2231 ``charset'language'text`` value.

    Raises:
        InvalidMediaType: If the value is malformed or the charset unsupported
    """
    parts = value.split("'")
    if len(parts) != 3:
        raise InvalidMediaType(f"Malformed extended parameter value {value!r}")
    charset, _, text = parts
    if charset.lower() not in _EXTENDED_CHARSETS:
        raise InvalidMediaType(f"Unsupported parameter charset {charset!r}")
    try:
        return unquote_to_bytes(text).decode(charset.lower())
    except UnicodeDecodeError as e:
        raise InvalidMediaType(f"Undecodable parameter value {value!r}") from e


def _consume_param(value: str) -> Tuple[str, str, str]:
    """
    Split a leading ``; attribute=value`` pair off ``value``.

    Returns:
        Tuple of (attribute, value, rest). Attribute is "" on failure.
    """
    rest = value.lstrip()
    if not rest.startswith(";"):
        return "", "", value
    rest = rest[1:].lstrip()

    attribute, rest = _consume_token(rest)
    attribute = attribute.lower()
    if not attribute:
        return "", "", value

    rest = rest.lstrip()
    if not rest.startswith("="):
        return "", "", value
    rest = rest[1:].lstrip()

    param_value, rest2 = _consume_value(rest)
    if param_value == "" and rest2 == rest:
        return "", "", value
    return attribute, param_value, rest2


def parse_media_type(value: str) -> Tuple[str, Dict[str, str]]:
    """
    Parse a media type header value.

    Args:
        value: e.g. ``multipart/related; boundary=abc; type="text/html"``

    Returns:
        Tuple of (lower-cased media type, parameter dict with lower-cased keys).
        RFC 2231 extended parameters (``name*``) are decoded and stored
        under their plain name.

    Raises:
        InvalidMediaType: If the type or a parameter is malformed, or a
            parameter is repeated
    """
    base, _, params_part = value.partition(";")
    media_type = base.strip().lower()

    maintype, slash, subtype = media_type.partition("/")
    if not is_token(maintype):
        raise InvalidMediaType(f"No media type in {value!r}")
    if slash and not is_token(subtype):
        raise InvalidMediaType(f"Expected token after slash in {value!r}")

    params: Dict[str, str] = {}
    rest = value[len(base):]
    while True:
        rest = rest.lstrip()
        if not rest:
            break
        attribute, param_value, rest = _consume_param(rest)
        if not attribute:
            if rest.strip() == ";":
                # Ignore a single trailing semicolon
                break
            raise InvalidMediaType(f"Invalid media parameter in {value!r}")
        if attribute.endswith("*") and attribute.count("*") == 1:
            attribute = attribute[:-1]
            param_value = _decode_extended(param_value)
        if attribute in params:
            raise InvalidMediaType(f"Duplicate parameter {attribute!r} in {value!r}")
        params[attribute] = param_value

    return media_type, params


def escape_quotes(value: str) -> str:
    """Backslash-escape backslashes and double quotes."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def format_media_type(media_type: str, params: Mapping[str, str]) -> str:
    """
    Serialize a media type and its parameters.

    Parameters are emitted in sorted order. Values that are not tokens are
    quoted, with ``"`` and ``\\`` backslash-escaped. Values holding control
    characters or non-ASCII text are written in RFC 2231 extended form.

    Args:
        media_type: ``type/subtype`` (or a bare token)
        params: Parameter mapping

    Returns:
        Formatted header value

    Raises:
        InvalidMediaType: If the type or an attribute name is not a token
    """
    maintype, slash, subtype = media_type.partition("/")
    if not is_token(maintype) or (slash and not is_token(subtype)):
        raise InvalidMediaType(f"Cannot format media type {media_type!r}")

    pieces = [media_type.lower()]
    for attribute in sorted(params):
        param_value = params[attribute]
        if not is_token(attribute):
            raise InvalidMediaType(f"Invalid parameter name {attribute!r}")
        if _needs_extended(param_value):
            pieces.append(f"{attribute.lower()}*={_encode_extended(param_value)}")
        elif is_token(param_value):
            pieces.append(f"{attribute.lower()}={param_value}")
        else:
            pieces.append(f'{attribute.lower()}="{escape_quotes(param_value)}"')

    return "; ".join(pieces)

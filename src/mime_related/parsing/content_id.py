"""
Content-ID parsing and formatting (RFC 2392 / RFC 5322 msg-id syntax).

A Content-ID travels on the wire as an angle-bracket address, ``<addr-spec>``.
The canonical form used for comparisons is the bare ``addr-spec``. Only the
address token is supported: no display names, no address lists.
"""

import re
from typing import Optional
from urllib.parse import unquote

from ..errors import InvalidContentId

# RFC 5322 section 3.2.3: atext
_ATEXT = r"[A-Za-z0-9!#$%&'*+\-/=?^_`{|}~]"
_DOT_ATOM = rf"{_ATEXT}+(?:\.{_ATEXT}+)*"

# RFC 5322 section 3.2.4: quoted-string without folding whitespace
_QUOTED_STRING = r'"(?:[^"\\\r\n]|\\[\x20-\x7e\t])*"'

# RFC 5322 section 3.4.1: domain-literal
_DOMAIN_LITERAL = r"\[[\x21-\x5a\x5e-\x7e]*\]"

_ADDR_SPEC_RE = re.compile(
    rf"(?:{_DOT_ATOM}|{_QUOTED_STRING})@(?:{_DOT_ATOM}|{_DOMAIN_LITERAL})"
)

CID_URL_SCHEME = "cid:"


def _parse_addr_spec(token: str) -> Optional[str]:
    """
    Validate a bare addr-spec.

    Args:
        token: Candidate address with surrounding whitespace removed

    Returns:
        The address, or None if it is not a valid addr-spec
    """
    if _ADDR_SPEC_RE.fullmatch(token):
        return token
    return None


def parse_content_id(wire_token: Optional[str]) -> str:
    """
    Parse a Content-ID header value into its canonical form.

    Accepts ``<a@b.c>`` as well as a bare ``a@b.c``. Malformed input
    yields an empty string; this function never raises.

    Args:
        wire_token: Header value as found on the wire (may be None)

    Returns:
        Canonical Content-ID, or "" if the token is malformed
    """
    if not wire_token:
        return ""

    token = wire_token.strip()
    if token.startswith("<"):
        if not token.endswith(">"):
            return ""
        token = token[1:-1].strip()

    return _parse_addr_spec(token) or ""


def format_content_id(canonical: str) -> str:
    """
    Format a canonical Content-ID for the wire.

    Args:
        canonical: Bare address, e.g. ``a@b.c``

    Returns:
        Angle-bracket form, e.g. ``<a@b.c>``

    Raises:
        InvalidContentId: If the id is empty or not a valid address
    """
    if not canonical:
        raise InvalidContentId("Content-ID must not be empty")

    wire = f"<{canonical}>"
    if parse_content_id(wire) != canonical:
        raise InvalidContentId(f"Malformed Content-ID: {canonical!r}")
    return wire


def content_id_from_reference(reference: str) -> str:
    """
    Resolve a part reference to a canonical Content-ID.

    Accepts the wire form, the bare form, or a ``cid:`` URL (RFC 2392), whose
    body is URL-encoded.

    Args:
        reference: Reference to resolve

    Returns:
        Canonical Content-ID, or "" if the reference is malformed
    """
    reference = reference.strip()
    if reference[: len(CID_URL_SCHEME)].lower() == CID_URL_SCHEME:
        return parse_content_id(unquote(reference[len(CID_URL_SCHEME):]))
    return parse_content_id(reference)

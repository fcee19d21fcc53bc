"""
Unit tests for Content-ID parsing and formatting (content_id.py).

Tests cover:
- Parsing angle-bracket and bare addresses
- Malformed tokens mapping to an empty id
- Formatting and validation on the write side
- cid: URL references
"""

import pytest

from mime_related.errors import InvalidContentId
from mime_related.parsing.content_id import (
    content_id_from_reference,
    format_content_id,
    parse_content_id,
)


class TestParseContentId:
    """Tests for parse_content_id() function."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "wire,expected",
        [
            ("<a@b.c>", "a@b.c"),
            ("a@b.c", "a@b.c"),
            ("  <a@b.c>  ", "a@b.c"),
            ("<part1.abc+def@example.com>", "part1.abc+def@example.com"),
            ('<"quoted local"@example.com>', '"quoted local"@example.com'),
            ("<id@[192.168.0.1]>", "id@[192.168.0.1]"),
        ],
    )
    def test_parse_valid(self, wire, expected):
        """Test valid tokens yield the bare address."""
        assert parse_content_id(wire) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "wire",
        ["<aa>", "", None, "<a@b.c", "<>", "<a@@b.c>", "<a..b@c>", "&&;&;&", "Name <a@b.c>"],
    )
    def test_parse_malformed_returns_empty(self, wire):
        """Test malformed tokens yield an empty id without raising."""
        assert parse_content_id(wire) == ""


class TestFormatContentId:
    """Tests for format_content_id() function."""

    @pytest.mark.unit
    def test_format_valid(self):
        """Test a valid id is wrapped in angle brackets."""
        assert format_content_id("a@b.c") == "<a@b.c>"

    @pytest.mark.unit
    @pytest.mark.parametrize("canonical", ["<aa>", "", "aa", "&&;&;&", "dont", "<a@b.c>"])
    def test_format_invalid_raises(self, canonical):
        """Test malformed ids raise InvalidContentId."""
        with pytest.raises(InvalidContentId):
            format_content_id(canonical)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "wire",
        ["<a@b.c>", "<root.part@example.org>", '<"x y"@example.org>', "<1@[10.0.0.1]>"],
    )
    def test_format_inverts_parse(self, wire):
        """Test format(parse(x)) == x for well-formed tokens."""
        assert format_content_id(parse_content_id(wire)) == wire


class TestContentIdFromReference:
    """Tests for content_id_from_reference() function."""

    @pytest.mark.unit
    def test_cid_url(self):
        """Test cid: URLs are URL-decoded."""
        assert content_id_from_reference("cid:foo4%25foo1@bar.net") == "foo4%foo1@bar.net"

    @pytest.mark.unit
    def test_cid_url_scheme_case_insensitive(self):
        """Test the cid: scheme is matched case-insensitively."""
        assert content_id_from_reference("CID:a@b.c") == "a@b.c"

    @pytest.mark.unit
    def test_wire_and_bare_forms(self):
        """Test non-URL references are parsed like Content-IDs."""
        assert content_id_from_reference("<a@b.c>") == "a@b.c"
        assert content_id_from_reference("a@b.c") == "a@b.c"
        assert content_id_from_reference("cid:nope") == ""

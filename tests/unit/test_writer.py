"""
Unit tests for the multipart/related writer (writer.py).

Tests cover:
- Root creation and the single-root rule
- Media type bookkeeping for the first part
- Validation of start, type and boundary
- The close-time type check
- Content-Type header generation
"""

import pytest

from mime_related.errors import (
    InvalidBoundary,
    InvalidContentId,
    InvalidMediaType,
    RootAlreadyExists,
    TypeMismatch,
)
from mime_related.parsing.media_type import parse_media_type
from mime_related.related.writer import RelatedWriter
from mime_related.version import DEFAULT_MEDIA_TYPE


class TestCreateRoot:
    """Tests for RelatedWriter.create_root()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "content_id,media_type,error",
        [
            ("dont", "dont/panic", InvalidContentId),
            ("", "dont;panic", InvalidMediaType),
            ("dont", "", InvalidContentId),
        ],
    )
    def test_invalid_arguments(self, output_buffer, content_id, media_type, error):
        """Test bad ids and media types fail before anything is written."""
        writer = RelatedWriter(output_buffer)
        with pytest.raises(error):
            writer.create_root(content_id, media_type)
        assert output_buffer.getvalue() == b""
        assert writer.state.root_part_written is False

    @pytest.mark.unit
    def test_second_root_rejected(self, output_buffer):
        """Test a second create_root() raises RootAlreadyExists."""
        writer = RelatedWriter(output_buffer)
        writer.create_root("", "a/b")
        with pytest.raises(RootAlreadyExists):
            writer.create_root("", "a/b")

    @pytest.mark.unit
    def test_stamps_headers_and_state(self, output_buffer):
        """Test the root sets start, type and the root media type."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.create_root(
            "root@example.com",
            "text/html",
            {"Content-Type": "ignored/type", "Content-Transfer-Encoding": "8bit"},
        ).write(b"<p>hi</p>")
        writer.close()

        assert writer.state.start == "<root@example.com>"
        assert writer.state.media_type == "text/html"
        assert writer.state.root_media_type == "text/html"
        assert writer.state.first_part_written is True

        output = output_buffer.getvalue()
        assert b"Content-Type: text/html\r\n" in output
        assert b"Content-ID: <root@example.com>\r\n" in output
        assert b"Content-Transfer-Encoding: 8bit\r\n" in output
        assert b"ignored/type" not in output

    @pytest.mark.unit
    def test_default_media_type(self, output_buffer):
        """Test an empty media type falls back to the default."""
        writer = RelatedWriter(output_buffer)
        writer.create_root()
        assert writer.state.media_type == DEFAULT_MEDIA_TYPE
        assert writer.state.start == ""


class TestCreatePart:
    """Tests for RelatedWriter.create_part()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "header,expected",
        [
            (None, DEFAULT_MEDIA_TYPE),
            ({"Content-Type": "a/b"}, "a/b"),
        ],
    )
    def test_first_part_sets_object_type(self, output_buffer, header, expected):
        """Test the first part defines the type when no root exists."""
        writer = RelatedWriter(output_buffer)
        assert writer.state.first_part_written is False

        writer.create_part("a@b.c", header)

        assert writer.state.media_type == expected
        assert writer.state.root_media_type == expected
        assert writer.state.first_part_written is True
        writer.close()

    @pytest.mark.unit
    def test_later_parts_do_not_change_type(self, output_buffer):
        """Test only the first part records a media type."""
        writer = RelatedWriter(output_buffer)
        writer.create_root("", "a/b")
        writer.create_part("", {"Content-Type": "image/png"})
        assert writer.state.media_type == "a/b"
        assert writer.state.root_media_type == "a/b"
        writer.close()

    @pytest.mark.unit
    def test_invalid_content_id(self, output_buffer):
        """Test a malformed id raises InvalidContentId."""
        writer = RelatedWriter(output_buffer)
        with pytest.raises(InvalidContentId):
            writer.create_part("&&;&;&")
        assert writer.state.first_part_written is False

    @pytest.mark.unit
    def test_invalid_content_type_header(self, output_buffer):
        """Test a malformed Content-Type header raises InvalidMediaType."""
        writer = RelatedWriter(output_buffer)
        with pytest.raises(InvalidMediaType):
            writer.create_part("", {"Content-Type": ";"})

    @pytest.mark.unit
    def test_stamps_content_id(self, output_buffer):
        """Test the formatted Content-ID is written."""
        writer = RelatedWriter(output_buffer)
        writer.create_part("img@example.com", {"content-type": "image/png"})
        output = output_buffer.getvalue()
        assert b"Content-ID: <img@example.com>\r\n" in output
        assert b"Content-Type: image/png\r\n" in output


class TestSetters:
    """Tests for set_start(), set_type() and set_boundary()."""

    @pytest.mark.unit
    def test_set_start(self, output_buffer):
        """Test valid ids are stored in wire form."""
        writer = RelatedWriter(output_buffer)
        writer.set_start("a@b.c")
        assert writer.state.start == "<a@b.c>"
        with pytest.raises(InvalidContentId):
            writer.set_start("aa")
        assert writer.state.start == "<a@b.c>"

    @pytest.mark.unit
    def test_set_type(self, output_buffer):
        """Test valid types are stored and invalid ones rejected."""
        writer = RelatedWriter(output_buffer)
        writer.set_type("application/json")
        assert writer.state.media_type == "application/json"
        with pytest.raises(InvalidMediaType):
            writer.set_type(";")
        assert writer.state.media_type == "application/json"

    @pytest.mark.unit
    def test_set_boundary(self, output_buffer):
        """Test valid boundaries are kept and invalid ones rejected."""
        writer = RelatedWriter(output_buffer)
        writer.set_boundary("abc")
        assert writer.boundary == "abc"
        with pytest.raises(InvalidBoundary):
            writer.set_boundary("ungültig")
        assert writer.boundary == "abc"

    @pytest.mark.unit
    def test_set_boundary_after_part(self, output_buffer):
        """Test the boundary cannot change once a part exists."""
        writer = RelatedWriter(output_buffer)
        writer.create_root()
        with pytest.raises(InvalidBoundary):
            writer.set_boundary("abc")


class TestClose:
    """Tests for RelatedWriter.close()."""

    @pytest.mark.unit
    def test_type_mismatch(self, output_buffer):
        """Test changing the type after the root fails at close."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.create_root("a@b.c", "text/plain")
        writer.set_type("text/html")
        with pytest.raises(TypeMismatch):
            writer.close()
        assert not output_buffer.getvalue().endswith(b"--abc--\r\n")

    @pytest.mark.unit
    def test_mismatch_resolved(self, output_buffer):
        """Test restoring the type lets close() succeed."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.create_root("a@b.c", "text/plain")
        writer.set_type("text/html")
        with pytest.raises(TypeMismatch):
            writer.close()
        writer.set_type("text/plain")
        writer.close()
        assert output_buffer.getvalue().endswith(b"\r\n--abc--\r\n")

    @pytest.mark.unit
    def test_repeated_close(self, output_buffer):
        """Test close() can be called more than once."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.create_root("", "a/b").write(b"x")
        writer.close()
        writer.close()
        assert output_buffer.getvalue().count(b"--abc--") == 1

    @pytest.mark.unit
    def test_empty_object(self, output_buffer):
        """Test closing without parts writes only the close delimiter."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.close()
        assert output_buffer.getvalue() == b"--abc--\r\n"

    @pytest.mark.unit
    def test_context_manager(self, output_buffer):
        """Test leaving a with-block closes the writer."""
        with RelatedWriter(output_buffer, boundary="abc") as writer:
            writer.create_root("", "a/b").write(b"x")
        assert output_buffer.getvalue().endswith(b"--abc--\r\n")


class TestFormDataContentType:
    """Tests for RelatedWriter.form_data_content_type()."""

    @pytest.mark.unit
    def test_all_parameters(self, output_buffer):
        """Test every parameter survives a parse of the header value."""
        writer = RelatedWriter(output_buffer)
        writer.set_boundary("abc")
        writer.set_type("text/plain")
        writer.set_start("a@b.c")
        writer.set_start_info('-o p"s')

        media_type, params = parse_media_type(writer.form_data_content_type())

        assert media_type == "multipart/related"
        assert params == {
            "boundary": "abc",
            "type": "text/plain",
            "start": "<a@b.c>",
            "start-info": '-o p\\"s',
        }

    @pytest.mark.unit
    def test_boundary_only(self, output_buffer):
        """Test unset parameters are omitted."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        assert writer.form_data_content_type() == "multipart/related; boundary=abc"

    @pytest.mark.unit
    def test_type_with_quotes_escaped(self, output_buffer):
        """Test backslashes and quotes in the type are pre-escaped."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.set_type('text/plain; name="a\\b"')
        _, params = parse_media_type(writer.form_data_content_type())
        assert params["type"] == 'text/plain; name=\\"a\\\\b\\"'

    @pytest.mark.unit
    def test_start_info_with_line_break(self, output_buffer):
        """Test a start-info holding CRLF stays on one header line and re-parses."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.set_start_info("line1\r\nX-Injected: yes")

        value = writer.form_data_content_type()

        assert "\r" not in value and "\n" not in value
        assert "start-info*=utf-8''" in value
        _, params = parse_media_type(value)
        assert params["start-info"] == "line1\r\nX-Injected: yes"

    @pytest.mark.unit
    def test_start_info_non_ascii(self, output_buffer):
        """Test non-ASCII start-info survives the header value."""
        writer = RelatedWriter(output_buffer, boundary="abc")
        writer.set_start_info("café")
        _, params = parse_media_type(writer.form_data_content_type())
        assert params["start-info"] == "café"

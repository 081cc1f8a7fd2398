"""
Unit tests for HTTP request parsing.
"""

import pytest

from recorderapi.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    normalize_path,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        """Test parsing a simple GET request."""
        request = RequestParser().parse(b"GET /status HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.target == "/status"
        assert request.path == "status"
        assert request.version == "HTTP/1.1"
        assert request.headers == {}
        assert request.body == b""

    def test_root_path_normalizes_to_empty(self):
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")
        assert request.path == ""

    def test_only_one_leading_slash_stripped(self):
        request = parse_request(b"GET //status HTTP/1.1\r\n\r\n")
        assert request.path == "/status"

    def test_query_string_not_interpreted(self):
        """Query strings stay part of the path and are not decoded."""
        request = parse_request(b"GET /status?verbose=1 HTTP/1.1\r\n\r\n")
        assert request.path == "status?verbose=1"

    def test_any_method_accepted(self):
        request = parse_request(b"BREW /start HTTP/1.1\r\n\r\n")
        assert request.method == "BREW"
        assert request.path == "start"

    def test_any_version_accepted(self):
        request = parse_request(b"GET /start SOMETHING/9\r\n\r\n")
        assert request.version == "SOMETHING/9"

    def test_extra_request_line_tokens_tolerated(self):
        request = parse_request(b"GET /pause HTTP/1.1 trailing\r\n\r\n")
        assert request.path == "pause"
        assert request.version == "HTTP/1.1"

    def test_parse_headers_case_folded_and_trimmed(self, sample_headers_request: bytes):
        """Test that header names are lower-cased and values trimmed."""
        request = parse_request(sample_headers_request)

        assert request.headers["content-type"] == "application/json"
        assert request.headers["x-custom"] == "spaced value"
        assert request.get_header("Content-Type") == "application/json"
        assert request.get_header("X-CUSTOM") == "spaced value"
        assert request.get_header("missing", "default") == "default"

    def test_header_value_split_on_first_colon(self):
        request = parse_request(b"GET / HTTP/1.1\r\nHost: localhost:8080\r\n\r\n")
        assert request.headers["host"] == "localhost:8080"

    def test_lines_without_colon_ignored(self):
        raw = b"GET / HTTP/1.1\r\nno colon here\r\nAccept: */*\r\n\r\n"
        request = parse_request(raw)
        assert request.headers == {"accept": "*/*"}

    def test_body_is_everything_after_terminator(self):
        """Content-Length is not enforced; the rest of the buffer is the body."""
        raw = (
            b"POST /api/record/save HTTP/1.1\r\n"
            b"Content-Length: 2\r\n"
            b"\r\n"
            b'{"name": "longer than two"}'
        )
        request = parse_request(raw)
        assert request.body == b'{"name": "longer than two"}'

    def test_body_lines_are_not_headers(self):
        raw = b"POST /save HTTP/1.1\r\n\r\nX-Not-A-Header: 1\r\n"
        request = parse_request(raw)
        assert "x-not-a-header" not in request.headers

    def test_json_body(self):
        raw = b'POST /api/status HTTP/1.1\r\n\r\n{"file": "out.mkv"}'
        assert parse_request(raw).json == {"file": "out.mkv"}

    def test_json_empty_body_is_none(self):
        assert parse_request(b"POST /api/status HTTP/1.1\r\n\r\n").json is None

    def test_json_invalid_body_raises(self):
        request = parse_request(b"POST /api/status HTTP/1.1\r\n\r\n{not json")
        with pytest.raises(HTTPParseError):
            _ = request.json

    def test_json_deeply_nested_body_raises_parse_error(self):
        """Nesting deep enough to exhaust the decoder is an invalid body."""
        body = b"[" * 200000 + b"]" * 200000
        request = parse_request(b"POST /api/record/save HTTP/1.1\r\n\r\n" + body)

        with pytest.raises(HTTPParseError):
            _ = request.json

    def test_json_non_utf8_body_raises_parse_error(self):
        request = parse_request(b"POST /api/status HTTP/1.1\r\n\r\n\xff\xfe")
        with pytest.raises(HTTPParseError):
            _ = request.json

    def test_garbage_request_line_rejected(self):
        """A request line with fewer than three tokens is a 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GARBAGE\r\n\r\n")

        assert exc_info.value.status_code == 400

    def test_two_token_request_line_rejected(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET /status\r\n\r\n")

    def test_empty_request_rejected(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"")


class TestNormalizePath:

    @pytest.mark.parametrize("target,expected", [
        ("/", ""),
        ("/index.html", "index.html"),
        ("/record/start", "record/start"),
        ("status", "status"),
    ])
    def test_normalize(self, target, expected):
        assert normalize_path(target) == expected


@pytest.fixture
def sample_headers_request() -> bytes:
    return (
        b"POST /api/record/save HTTP/1.1\r\n"
        b"Content-Type:   application/json  \r\n"
        b"  X-Custom :spaced value\r\n"
        b"\r\n"
        b"{}"
    )

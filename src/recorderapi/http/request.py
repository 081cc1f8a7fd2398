"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes buffered for a connection into an HTTPRequest.

The control service speaks a deliberately small subset of HTTP/1.1: one
request per connection, no method validation, no Content-Length framing.

=============================================================================
WHAT GETS PARSED
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  POST /api/record/save HTTP/1.1\r\n        ← request line           │
    │  ──┬─ ─────────┬──────── ───┬────                                   │
    │  method      target       version                                   │
    │                                                                      │
    │  Content-Type: application/json\r\n        ← headers                │
    │  \r\n                                      ← terminator             │
    │  {}                                        ← body (everything left) │
    └─────────────────────────────────────────────────────────────────────┘

    target "/api/record/save"  →  path "api/record/save"

Rules:

1. The request line is split on single spaces and needs at least three
   tokens (METHOD TARGET VERSION). Anything shorter is a 400.
2. Header lines are split on the FIRST colon. Names are trimmed and
   lower-cased, values trimmed. Lines without a colon are skipped.
3. Headers end at the first empty line.
4. Everything after the first CRLF CRLF is the body. Content-Length is
   not consulted; whatever arrived in the buffer is the body.
5. One leading "/" is stripped from the target to form the path used for
   dispatch. Query strings are left in place and not interpreted.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import json


HEADER_TERMINATOR = b"\r\n\r\n"


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code to answer with. The service only raises
    this for a malformed request line, so the code is 400 in practice.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:  Request method as sent ("GET", "POST", anything else).
        target:  Raw request target ("/record/start").
        path:    Normalized path used for dispatch ("record/start").
        version: Version token as sent ("HTTP/1.1").
        headers: Header mapping with lower-cased names and trimmed values.
        body:    Bytes after the header terminator (may be empty).
    """

    method: str
    target: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    _body_json: Optional[Any] = field(default=None, repr=False)

    def get_header(self, name: str, default: str = "") -> str:
        """
        Case-insensitive header lookup.

            request.get_header("Content-Type") == request.headers["content-type"]
        """
        return self.headers.get(name.lower(), default)

    @property
    def json(self) -> Any:
        """
        Parse the request body as JSON.

        Parsed once and cached. Returns None for an empty body.

        Raises:
            HTTPParseError: If the body is not valid JSON.
        """
        if self._body_json is None and self.body:
            try:
                self._body_json = json.loads(self.body.decode("utf-8"))
            except (ValueError, RecursionError) as e:
                # ValueError covers JSONDecodeError and UnicodeDecodeError
                raise HTTPParseError(f"Invalid JSON body: {type(e).__name__}")
        return self._body_json


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    Stateless; one instance is shared by every connection of a service.

    Usage:
        parser = RequestParser()
        request = parser.parse(b"GET /status HTTP/1.1\\r\\n\\r\\n")
        request.path  # "status"
    """

    def parse(self, data: bytes) -> HTTPRequest:
        """
        Parse a buffered request.

        Args:
            data: Bytes ending at or past the first CRLF CRLF.

        Returns:
            Parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request is empty or the request line
                            has fewer than three tokens.
        """
        if not data:
            raise HTTPParseError("Empty request")

        header_end = data.find(HEADER_TERMINATOR)
        if header_end == -1:
            header_section = data
            body = b""
        else:
            header_section = data[:header_end]
            body = data[header_end + len(HEADER_TERMINATOR):]

        lines = header_section.decode("utf-8", errors="replace").split("\r\n")

        method, target, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            target=target,
            path=normalize_path(target),
            version=version,
            headers=headers,
            body=body,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """
        Split "METHOD SP TARGET SP VERSION".

        Extra tokens after the version are tolerated and ignored.
        """
        parts = line.split(" ")
        if len(parts) < 3:
            raise HTTPParseError(f"Invalid request line: {line}")
        return parts[0], parts[1], parts[2]

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                break

            name, sep, value = line.partition(":")
            if not sep or not name.strip():
                continue  # Lenient: skip lines that are not "Name: value"

            headers[name.strip().lower()] = value.strip()

        return headers


def normalize_path(target: str) -> str:
    """Strip a single leading "/" from a request target."""
    if target.startswith("/"):
        return target[1:]
    return target


def parse_request(data: bytes) -> HTTPRequest:
    """Parse a request with a throwaway RequestParser."""
    return RequestParser().parse(data)

"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds the HTTP/1.1 responses written back to control clients.

=============================================================================
WIRE FORMAT
=============================================================================

Every response has exactly this shape:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\r\n                                                │
    │  Content-Type: application/json\r\n                                 │
    │  Content-Length: 44\r\n                                             │
    │  Connection: close\r\n                  ← one request per connection │
    │  Access-Control-Allow-Origin: *\r\n     ← browser tools may call us  │
    │  \r\n                                                               │
    │  {"success":true,"data":{"action":"started"}}                       │
    └─────────────────────────────────────────────────────────────────────┘

No chunked encoding, no Date or Server headers. The connection is always
closed after the body, so clients can also read until EOF.

=============================================================================
BUILDER PATTERN
=============================================================================

    ResponseBuilder().status(HTTPStatus.NOT_FOUND).text("Not Found").build()
    ResponseBuilder().json({"success": True, "data": {}}).build()

The module-level helpers (ok, json_response, bad_request, not_found,
internal_error) cover every response the service sends.

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Union
import json

from .status_codes import HTTPStatus, reason_phrase


TEXT_PLAIN = "text/plain"
APPLICATION_JSON = "application/json"


@dataclass
class HTTPResponse:
    """
    An outbound HTTP response.

    status may be any integer; codes outside HTTPStatus are written with
    the phrase "Unknown".
    """

    status: int = HTTPStatus.OK
    content_type: str = TEXT_PLAIN
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def phrase(self) -> str:
        return reason_phrase(self.status)

    @property
    def status_line(self) -> str:
        """
        The first line of the response.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.phrase}"

    @property
    def headers(self) -> dict[str, str]:
        """Headers in the order they are written."""
        return {
            "Content-Type": self.content_type,
            "Content-Length": str(len(self.body)),
            "Connection": "close",
            "Access-Control-Allow-Origin": "*",
        }

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (for logging and tests)."""
        return self.body.decode("utf-8", errors="replace")

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        Returns:
            Status line, headers, blank line and body as one bytes object.
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"success": True, "data": {}})
            .build())
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._content_type = TEXT_PLAIN
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        self._content_type = content_type
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set a raw body. Strings are encoded as UTF-8.

        Returns:
            Self for method chaining
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Set a text/plain body."""
        self._content_type = TEXT_PLAIN
        return self.body(text)

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Set an application/json body.

        Serialized compactly (no whitespace) so the envelope on the wire is
        byte-for-byte predictable, e.g. {"success":false,"error":"Not recording"}.
        """
        self._content_type = APPLICATION_JSON
        self._body = json.dumps(
            data, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            content_type=self._content_type,
            body=self._body,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(text: str) -> HTTPResponse:
    """200 OK with a plain-text body."""
    return ResponseBuilder().status(HTTPStatus.OK).text(text).build()


def json_response(data: Any, status: int = HTTPStatus.OK) -> HTTPResponse:
    """JSON response, 200 OK unless told otherwise."""
    return ResponseBuilder().status(status).json(data).build()


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    """400 Bad Request, plain text."""
    return ResponseBuilder().status(HTTPStatus.BAD_REQUEST).text(message).build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    """404 Not Found, plain text."""
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).text(message).build()


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """
    500 Internal Server Error, plain text.

    Never put exception details in the message; they go to the log.
    """
    return ResponseBuilder().status(HTTPStatus.INTERNAL_SERVER_ERROR).text(message).build()

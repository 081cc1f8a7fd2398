"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       Raw bytes → HTTPRequest (request line, headers, body)
    response.py      HTTPResponse / ResponseBuilder → raw bytes
    router.py        Normalized path → handler
    status_codes.py  The four status codes the service answers with

Nothing in this package touches sockets; it can be exercised with plain
bytes in unit tests.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,              # 200 text/plain
    json_response,   # 200 application/json
    bad_request,     # 400
    not_found,       # 404
    internal_error,  # 500
)
from .router import Router, Route
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "json_response",
    "bad_request",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
]

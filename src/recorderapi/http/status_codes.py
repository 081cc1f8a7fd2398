"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The control service only ever answers with four status codes:

    ┌───────┬──────────────────────────┬───────────────────────────────────┐
    │ Code  │ Phrase                   │ When                              │
    ├───────┼──────────────────────────┼───────────────────────────────────┤
    │ 200   │ OK                       │ Index page and every JSON reply   │
    │ 400   │ Bad Request              │ Malformed request line            │
    │ 404   │ Not Found                │ Path outside the dispatch table   │
    │ 500   │ Internal Server Error    │ Unexpected fault while handling   │
    └───────┴──────────────────────────┴───────────────────────────────────┘

Recorder state errors (e.g. pausing while idle) are NOT HTTP errors: they
travel as {"success": false, ...} inside a 200 response.

Any other code written to the wire gets the phrase "Unknown".

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the service.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


def reason_phrase(code: int) -> str:
    """
    Get the reason phrase for any integer status code.

    Args:
        code: Numeric status code.

    Returns:
        The phrase for known codes, "Unknown" otherwise.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"

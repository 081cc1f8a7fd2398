"""
Exception types raised by the control service.

    RecorderAPIError
    ├── ConfigError   - bad construction arguments or configuration
    ├── BindError     - the listening socket could not be bound
    └── StateError    - an operation was invoked in the wrong state

Parse failures live next to the parser (http.request.HTTPParseError)
because they carry the HTTP status code to answer with.
"""


class RecorderAPIError(Exception):
    """Base class for all control service errors."""


class ConfigError(RecorderAPIError, ValueError):
    """Raised when the service is constructed with invalid arguments."""


class BindError(RecorderAPIError, OSError):
    """Raised when the listener cannot bind or listen on its address."""


class StateError(RecorderAPIError):
    """
    Raised when an operation is not valid in the current state.

    Used for both the service lifecycle (starting twice) and for recorder
    commands issued in the wrong recorder state. The message is what the
    client sees in the JSON error envelope.
    """

"""
=============================================================================
RECORDERAPI - Remote Control HTTP Service for a Screen Recorder
=============================================================================

A small HTTP/1.1 server that lets external tools inspect and drive a
screen recorder: start, pause/resume, save, cancel and status.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    recorderapi/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m recorderapi)
    ├── service.py           # ControlService - lifecycle and event loop
    ├── controller.py        # RecorderController contract + SimulatedRecorder
    ├── config.py            # ServiceConfig dataclass
    ├── errors.py            # ConfigError, BindError, StateError
    ├── core/                # Networking
    │   ├── socket_server.py # Listening socket and selector
    │   └── connection.py    # Per-client socket and request buffer
    ├── http/                # HTTP protocol
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response building
    │   ├── router.py        # Exact-path routing
    │   └── status_codes.py  # Status codes and phrases
    └── handlers/            # Endpoints
        ├── control.py       # Recorder control endpoints
        └── envelope.py      # JSON success/error envelope

=============================================================================
QUICK START
=============================================================================

    from recorderapi import ControlService, SimulatedRecorder

    service = ControlService(SimulatedRecorder())
    service.start(8080)
    service.serve_forever()

    $ curl -X POST localhost:8080/start
    {"success":true,"data":{"action":"started"}}

=============================================================================
"""

__version__ = "1.0.0"

from .service import ControlService
from .config import ServiceConfig
from .controller import RecorderController, SimulatedRecorder
from .errors import RecorderAPIError, ConfigError, BindError, StateError

__all__ = [
    "ControlService",
    "ServiceConfig",
    "RecorderController",
    "SimulatedRecorder",
    "RecorderAPIError",
    "ConfigError",
    "BindError",
    "StateError",
    "__version__",
]

"""
=============================================================================
RECORDER CONTROL ENDPOINTS
=============================================================================

Translates HTTP requests into RecorderController calls.

=============================================================================
DISPATCH TABLE
=============================================================================

    ┌──────────────────────────────────────────────┬───────────────────────┐
    │ Normalized path                              │ Action                │
    ├──────────────────────────────────────────────┼───────────────────────┤
    │ "", index, index.html                        │ usage page (text)     │
    │ start, record/start                          │ start_or_resume       │
    │ pause, record/pause                          │ pause                 │
    │ save, record/save                            │ save                  │
    │ cancel, record/cancel                        │ cancel                │
    │ status, record/status,                       │ status                │
    │   api/status, api/record/status              │                       │
    │ api/<suffix>                                 │ legacy JSON API       │
    └──────────────────────────────────────────────┴───────────────────────┘

Every action answers 200 with the JSON envelope. A command issued in the
wrong recorder state raises StateError internally and comes back as
{"success": false, "error": "<message>"}.

=============================================================================
STATE RULES
=============================================================================

    start_or_resume   paused        → toggle_pause()   {"action": "resumed"}
                      not recording → start()          {"action": "started"}
                      otherwise     → "Already recording"

    pause             recording and not paused → pause()
                      otherwise     → "Not recording or already paused"

    save / cancel     recording (paused included) → save(False) / cancel(False)
                      otherwise     → "Not recording"

    status            always succeeds

=============================================================================
"""

from typing import Any, Callable, Dict
import logging

from ..controller import RecorderController
from ..errors import StateError
from ..http.request import HTTPRequest, HTTPParseError
from ..http.response import HTTPResponse, ok, json_response
from ..http.router import Router
from .envelope import Envelope, Success, Error


logger = logging.getLogger(__name__)


INDEX_PAGE = (
    "SimpleScreenRecorder API Server\n"
    "\n"
    "Available endpoints:\n"
    "- /start - Start recording\n"
    "- /pause - Pause recording\n"
    "- /save - Save recording\n"
    "- /cancel - Cancel recording\n"
    "- /status - Get status information\n"
)

API_PREFIX = "api/"


class ControlHandler:
    """
    Recorder control actions and their HTTP endpoints.

    The handler keeps a plain reference to the controller; it never owns
    or outlives it.

    Usage:
        handler = ControlHandler(recorder)
        router = Router()
        handler.register(router)
    """

    def __init__(self, controller: RecorderController):
        self._controller = controller

        # Suffixes accepted by the legacy api/<suffix> route
        self._legacy_actions: Dict[str, Callable[[], Envelope]] = {
            "status": self.status,
            "record/start": self.start_or_resume,
            "record/pause": self.pause,
            "record/cancel": self.cancel,
            "record/save": self.save,
        }

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def status(self) -> Envelope:
        """Snapshot of the recorder state. Never fails."""
        c = self._controller
        return Success({
            "is_recording": bool(c.is_recording()),
            "is_paused": bool(c.is_paused()),
            "file_name": c.current_file_name() or "",
            # String, so 64-bit sizes survive JSON clients with 53-bit numbers
            "file_size": str(int(c.current_file_size())),
            "total_time": int(c.total_time()),
        })

    def start_or_resume(self) -> Envelope:
        c = self._controller
        if c.is_paused():
            c.toggle_pause()
            return Success({"action": "resumed"})
        if not c.is_recording():
            c.start()
            return Success({"action": "started"})
        raise StateError("Already recording")

    def pause(self) -> Envelope:
        c = self._controller
        if not c.is_recording() or c.is_paused():
            raise StateError("Not recording or already paused")
        c.pause()
        return Success()

    def save(self) -> Envelope:
        c = self._controller
        if not c.is_recording():
            raise StateError("Not recording")
        c.save(False)
        return Success()

    def cancel(self) -> Envelope:
        c = self._controller
        if not c.is_recording():
            raise StateError("Not recording")
        c.cancel(False)
        return Success()

    def run(self, action: Callable[[], Envelope]) -> Envelope:
        """Run an action, turning StateError into the error envelope."""
        try:
            return action()
        except StateError as e:
            logger.info(f"{action.__name__} rejected: {e}")
            return Error(str(e))

    # =========================================================================
    # HTTP ENDPOINTS
    # =========================================================================

    def index(self, request: HTTPRequest) -> HTTPResponse:
        """Plain-text usage listing."""
        return ok(INDEX_PAGE)

    def endpoint(self, action: Callable[[], Envelope]) -> Callable[[HTTPRequest], HTTPResponse]:
        """Wrap an action as a request handler answering with its envelope."""
        def handle(request: HTTPRequest) -> HTTPResponse:
            return json_response(self.run(action).to_dict())
        handle.__name__ = action.__name__
        return handle

    def legacy_api(self, request: HTTPRequest) -> HTTPResponse:
        """
        Legacy JSON API: api/<suffix>.

        The body, if present, is parsed as a JSON object for compatibility
        with older clients. No action reads it.
        """
        suffix = request.path[len(API_PREFIX):]
        params = self._json_params(request)
        if params:
            logger.debug(f"Ignoring legacy API parameters: {sorted(params)}")

        action = self._legacy_actions.get(suffix)
        if action is None:
            logger.warning(f"Unknown API endpoint: {suffix}")
            return json_response(Error("Unknown API endpoint").to_dict())

        return json_response(self.run(action).to_dict())

    def _json_params(self, request: HTTPRequest) -> Dict[str, Any]:
        """Body as a JSON object; {} when empty, invalid or not an object."""
        try:
            data = request.json
        except HTTPParseError as e:
            logger.debug(f"Ignoring unparsable API body: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def register(self, router: Router) -> None:
        """Install every control route on a router."""
        router.route("", "index", "index.html")(self.index)

        for action, paths in (
            (self.start_or_resume, ("start", "record/start")),
            (self.pause, ("pause", "record/pause")),
            (self.save, ("save", "record/save")),
            (self.cancel, ("cancel", "record/cancel")),
            (self.status, ("status", "record/status", "api/status", "api/record/status")),
        ):
            router.route(*paths)(self.endpoint(action))

        router.add_prefix(API_PREFIX, self.legacy_api)

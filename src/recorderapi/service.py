"""
=============================================================================
CONTROL SERVICE
=============================================================================

Ties the networking core, the HTTP components and the control endpoints
together into the remote control server of the recorder.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ControlService                              │
    │                                                                      │
    │   ┌──────────────┐   ┌───────────────┐   ┌───────────────────────┐  │
    │   │ SocketServer │   │ RequestParser │   │ Router                │  │
    │   │ (listener +  │   │ (bytes →      │   │  └─ ControlHandler    │  │
    │   │  selector)   │   │  HTTPRequest) │   │      └─ Recorder-     │  │
    │   └──────┬───────┘   └───────────────┘   │         Controller    │  │
    │          │                               └───────────────────────┘  │
    │          ▼                                                           │
    │   connections: {id → Connection}                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ACCEPT       SocketServer accepts, ControlService records the
                    Connection in its table
    2. READ         Each readable event appends to the connection buffer
    3. FRAME        Buffer contains \\r\\n\\r\\n → snapshot and clear it
    4. PARSE        RequestParser → HTTPRequest (400 on a bad request line)
    5. DISPATCH     Router → ControlHandler → RecorderController
    6. WRITE        Exactly one response, Connection: close
    7. RELEASE      Unregister, drop from the table, close the socket

A failure anywhere in 4-5 is answered with 500 and only affects that one
connection.

=============================================================================
THREADING
=============================================================================

Everything (accept, read, controller calls, write) happens on the thread
that calls run_once()/serve_forever(). The controller therefore needs no
locking against the service. shutdown() is the one method that may be
called from another thread; it only sets a flag that serve_forever()
checks between polls.

=============================================================================
"""

import logging
import threading
import weakref
from typing import Callable, Dict, Optional, Tuple

from .config import ServiceConfig
from .controller import RecorderController
from .core import SocketServer, Connection
from .errors import BindError, ConfigError, StateError
from .handlers import ControlHandler
from .http import (
    HTTPResponse, RequestParser, HTTPParseError, Router,
    bad_request, internal_error,
)


logger = logging.getLogger(__name__)


class ControlService:
    """
    Remote control HTTP service for a recorder.

    =========================================================================
    USAGE
    =========================================================================

        service = ControlService(recorder)
        if not service.start(8080):
            sys.exit(1)
        service.serve_forever()        # until shutdown() is called

    Or, driving the loop from an existing main loop:

        with ControlService(recorder) as service:
            service.start(8080)
            while app_running:
                service.run_once(timeout=0.05)
                ...

    =========================================================================
    LIFECYCLE
    =========================================================================

        Stopped ──start()──► Listening ──stop()──► Stopped
                   │
                   └── False (and still Stopped) if the port is unavailable

    =========================================================================
    """

    def __init__(self, controller: RecorderController, config: Optional[ServiceConfig] = None):
        """
        Create the service. Does not bind.

        Args:
            controller: The recorder to drive. Not owned; must outlive the
                        service.
            config: Service configuration. Defaults to ServiceConfig().

        Raises:
            ConfigError: If controller is None or the config is invalid.
        """
        logger.info("Creating control server...")

        if controller is None:
            logger.error("Recorder controller is None")
            raise ConfigError("Recorder controller is None")

        self.config = config or ServiceConfig()
        self.config.validate()

        self._controller = controller
        self._parser = RequestParser()

        self._router = Router()
        ControlHandler(controller).register(self._router)

        # Weak, so dropping the last reference runs __del__ right away
        self._socket_server = SocketServer(
            self.config,
            on_connect=_weak_callback(self._on_connect),
            on_readable=_weak_callback(self._on_readable),
        )

        # Live connections keyed by Connection.id
        self.connections: Dict[str, Connection] = {}

        self._shutdown_event = threading.Event()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_listening(self) -> bool:
        return self._socket_server.is_listening

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def port(self) -> int:
        """Bound port (the real one when started with port 0)."""
        return self.address[1]

    @property
    def router(self) -> Router:
        return self._router

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, port: Optional[int] = None) -> bool:
        """
        Bind and listen on config.host.

        Args:
            port: Port to listen on. Defaults to config.port.

        Returns:
            True if listening, False if the listener could not be set up.

        Raises:
            StateError: If the service is already listening.
        """
        if self.is_listening:
            raise StateError("Control server is already listening")

        if port is None:
            port = self.config.port

        try:
            self._socket_server.listen(port)
        except BindError as e:
            logger.error(f"Could not start control server on port {port}: {e}")
            return False

        self._shutdown_event.clear()
        host, bound_port = self.address
        logger.info(f"Control server listening on {host}:{bound_port}")
        logger.debug("Routes:\n" + self._router.describe())
        return True

    def stop(self) -> None:
        """
        Close the listener and every live connection.

        Safe to call when already stopped.
        """
        if not self.is_listening:
            return

        for conn in list(self.connections.values()):
            self._release(conn)

        self._socket_server.close()
        logger.info("Control server stopped.")

    def close(self) -> None:
        """Destroy the service. Implies stop()."""
        self.stop()

    def __enter__(self) -> "ControlService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        # __init__ may have raised before the socket server existed
        if getattr(self, "_socket_server", None) is not None:
            self.stop()

    # =========================================================================
    # EVENT LOOP
    # =========================================================================

    def run_once(self, timeout: Optional[float] = None) -> int:
        """
        Run one iteration of the event loop.

        Args:
            timeout: Seconds to wait for activity. None blocks until a
                     socket is ready; 0 only handles what is already ready.

        Returns:
            Number of ready sockets that were handled.
        """
        handled = self._socket_server.poll(timeout)
        self._close_idle_connections()
        return handled

    def serve_forever(self, poll_interval: Optional[float] = None) -> None:
        """
        Run the event loop until shutdown() is called, then stop().

        Raises:
            StateError: If the service has not been started.
        """
        if not self.is_listening:
            raise StateError("Control server is not listening")

        interval = self.config.poll_interval if poll_interval is None else poll_interval
        try:
            while not self._shutdown_event.is_set():
                self.run_once(interval)
        finally:
            self.stop()

    def shutdown(self) -> None:
        """
        Ask serve_forever() to return. Safe from any thread or signal handler.
        """
        self._shutdown_event.set()

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, data: bytes) -> HTTPResponse:
        """
        Parse and dispatch one buffered request.

        Args:
            data: Raw bytes containing at least the header section.

        Returns:
            The response to write. Parse errors become 400 Bad Request.
        """
        try:
            request = self._parser.parse(data)
        except HTTPParseError as e:
            logger.warning(f"Bad request: {e}")
            return bad_request()

        logger.info(f"Received {request.method} request for {request.target}")
        return self._router.handle(request)

    # =========================================================================
    # CONNECTION CALLBACKS
    # =========================================================================

    def _on_connect(self, conn: Connection) -> None:
        self.connections[conn.id] = conn
        self._socket_server.watch(conn)
        logger.debug(f"[{conn.id}] New connection from {conn.client_ip}")

    def _on_readable(self, conn: Connection) -> None:
        if conn.id not in self.connections:
            logger.warning(f"[{conn.id}] Socket not found in connection table")
            self._socket_server.forget(conn)
            conn.close()
            return

        try:
            received = conn.receive()

            if conn.has_complete_request:
                response = self.handle_request(conn.take_buffer())
                self._respond(conn, response)
            elif conn.peer_closed:
                self._on_disconnect(conn)
            elif not received:
                logger.debug(f"[{conn.id}] Readable with no data")
        except Exception:
            logger.exception(f"[{conn.id}] Error processing request")
            if conn.is_open:
                self._respond(conn, internal_error())

    def _on_disconnect(self, conn: Connection) -> None:
        if conn.id not in self.connections:
            logger.warning(f"[{conn.id}] Disconnected socket not found in connection table")
            conn.close()
            return

        self._release(conn)
        logger.info(f"[{conn.id}] Client disconnected, cleaned up resources.")

    def _respond(self, conn: Connection, response: HTTPResponse) -> None:
        """Write the single response for a connection, then release it."""
        if conn.send_response(response.to_bytes()):
            logger.debug(f"[{conn.id}] {response.status_line}")
        self._release(conn)

    def _release(self, conn: Connection) -> None:
        self._socket_server.forget(conn)
        self.connections.pop(conn.id, None)
        conn.close()

    def _close_idle_connections(self) -> None:
        timeout = self.config.idle_timeout
        if timeout is None:
            return

        for conn in list(self.connections.values()):
            if conn.idle_time > timeout:
                logger.info(f"[{conn.id}] Closing idle connection after {conn.idle_time:.1f}s")
                self._release(conn)


def _weak_callback(method: Callable[[Connection], None]) -> Callable[[Connection], None]:
    """Wrap a bound method so the caller does not keep its instance alive."""
    ref = weakref.WeakMethod(method)

    def callback(conn: Connection) -> None:
        bound = ref()
        if bound is not None:
            bound(conn)

    return callback

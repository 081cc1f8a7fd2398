"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the selector that drives the service's
single-threaded event loop.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create the listening socket
    2. bind()      Associate it with HOST:PORT        ─┐
    3. listen()    Start queueing connections          ├─ listen()
    4. register    Add it to the selector             ─┘
    5. poll()      select() → accept() / readable callbacks (repeatedly)
    6. close()     Unregister and release the socket

=============================================================================
ONE THREAD, MANY SOCKETS
=============================================================================

Instead of a thread per client, every socket (the listener and each
client connection) is registered with a selectors.DefaultSelector:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   poll(timeout)                                                     │
    │       │                                                             │
    │       └──► selector.select(timeout)                                 │
    │               │                                                     │
    │               ├── listener ready   → accept() → on_connect(conn)    │
    │               │                                                     │
    │               └── client ready     → on_readable(conn)              │
    └─────────────────────────────────────────────────────────────────────┘

Callbacks run on the thread calling poll(). Nothing here is thread-safe
and nothing needs to be: the recorder controller is only ever touched
from that same thread.

=============================================================================
"""

import socket
import selectors
import logging
from typing import Optional, Callable, Tuple

from ..config import ServiceConfig
from ..errors import BindError
from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionCallback = Callable[[Connection], None]


class SocketServer:
    """
    Listening socket plus selector.

    Usage:
        server = SocketServer(config, on_connect=..., on_readable=...)
        server.listen(8080)          # raises BindError on failure
        while running:
            server.poll(0.5)
        server.close()
    """

    def __init__(
        self,
        config: ServiceConfig,
        on_connect: ConnectionCallback,
        on_readable: ConnectionCallback,
    ):
        """
        Args:
            config: Service configuration (host, backlog, buffer sizes).
            on_connect: Called with each newly accepted Connection.
            on_readable: Called when a registered Connection has data
                         (or the peer closed).

        Note: No socket is created here; see listen().
        """
        self.config = config
        self._on_connect = on_connect
        self._on_readable = on_readable

        self._socket: Optional[socket.socket] = None
        self._selector: Optional[selectors.BaseSelector] = None

    @property
    def is_listening(self) -> bool:
        return self._socket is not None

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port). Reflects the real port when 0 was requested."""
        if self._socket is None:
            return (self.config.host, self.config.port)
        return self._socket.getsockname()[:2]

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting the recorder must not wait out TIME_WAIT on the port
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.setblocking(False)
        return sock

    def listen(self, port: int) -> None:
        """
        Bind, listen and register the listening socket.

        Args:
            port: TCP port on config.host. 0 picks a free port.

        Raises:
            BindError: If the socket cannot be bound or put into listen mode.
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, port))
            sock.listen(self.config.backlog)
        except (OSError, OverflowError) as e:
            sock.close()
            raise BindError(f"Could not listen on {self.config.host}:{port}: {e}") from e

        self._socket = sock
        self._selector = selectors.DefaultSelector()
        self._selector.register(sock, selectors.EVENT_READ, data=None)

    def watch(self, conn: Connection) -> None:
        """Start delivering readable events for a connection."""
        self._selector.register(conn.socket, selectors.EVENT_READ, data=conn)

    def forget(self, conn: Connection) -> None:
        """Stop delivering events for a connection. Safe if never watched."""
        if self._selector is None:
            return
        try:
            self._selector.unregister(conn.socket)
        except (KeyError, ValueError):
            pass  # Not registered, or socket already closed

    def poll(self, timeout: Optional[float] = None) -> int:
        """
        Wait up to timeout seconds and run the callbacks for ready sockets.

        Returns:
            Number of ready sockets handled.
        """
        if self._selector is None:
            return 0

        events = self._selector.select(timeout)
        for key, _mask in events:
            if key.data is None:
                self._accept()
            else:
                self._on_readable(key.data)
        return len(events)

    def _accept(self) -> None:
        """Accept every pending connection on the listener."""
        while self._socket is not None:
            try:
                client_socket, client_address = self._socket.accept()
            except (BlockingIOError, InterruptedError):
                return
            except OSError as e:
                logger.error(f"Accept error: {e}")
                return

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                write_timeout=self.config.write_timeout,
            )
            self._on_connect(conn)

    def close(self) -> None:
        """Unregister and close the listening socket and the selector."""
        if self._selector is not None:
            self._selector.close()
            self._selector = None

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

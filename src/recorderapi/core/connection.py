"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket together with the bytes received from it
so far.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

A request like

    GET /status HTTP/1.1\r\n
    \r\n

may arrive in one recv() or in five. The connection keeps appending to its
buffer and the service only looks at the request once the header
terminator (\r\n\r\n) is present.

    readable → receive() → buffer += chunk → terminator? ──no──► wait
                                                │
                                               yes
                                                ▼
                                          take_buffer()
                                          parse + dispatch
                                          send_response()
                                          close()

Only ONE request is served per connection: the response always carries
"Connection: close" and the socket is closed right after it is written.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSED
     │         │                                     ▲
     └─────────┴──────── peer disconnect ────────────┘

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
import uuid

from ..http.request import HEADER_TERMINATOR


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""

    NEW = "new"                # Accepted, nothing read yet
    READING = "reading"        # Accumulating request bytes
    PROCESSING = "processing"  # Request handed to the dispatcher
    WRITING = "writing"        # Sending the response
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    One accepted client connection.

    The socket is switched to non-blocking mode so the event loop never
    stalls on a slow client while reading. Writes temporarily use a
    bounded timeout instead (see send_response).

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Stable identifier used as the key in the service's table.
        state: Current lifecycle state.
        created_at: Monotonic timestamp of accept().
        last_activity: Monotonic timestamp of the last read or write.
        peer_closed: True once the client has closed its side.
    """

    socket: socket.socket
    address: tuple[str, int]
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)
    last_activity: float = field(default_factory=time.monotonic)
    peer_closed: bool = False

    buffer_size: int = 8192
    write_timeout: float = 5.0

    _buffer: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.setblocking(False)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def is_open(self) -> bool:
        return self.state != ConnectionState.CLOSED

    @property
    def age(self) -> float:
        """Seconds since accept()."""
        return time.monotonic() - self.created_at

    @property
    def idle_time(self) -> float:
        """Seconds since the last read or write."""
        return time.monotonic() - self.last_activity

    @property
    def buffered(self) -> int:
        """Number of bytes waiting in the buffer."""
        return len(self._buffer)

    @property
    def has_complete_request(self) -> bool:
        """True once the buffer contains the header terminator."""
        return HEADER_TERMINATOR in self._buffer

    def receive(self) -> int:
        """
        Append every byte currently available on the socket to the buffer.

        Reads until the kernel has nothing more for us (BlockingIOError) or
        the peer closes. Sets peer_closed when recv() returns b"" or the
        connection was reset.

        Returns:
            Number of bytes appended.
        """
        self.state = ConnectionState.READING
        received = 0

        while True:
            try:
                chunk = self.socket.recv(self.buffer_size)
            except (BlockingIOError, InterruptedError):
                break
            except (ConnectionResetError, ConnectionAbortedError, BrokenPipeError):
                self.peer_closed = True
                break

            if not chunk:
                self.peer_closed = True
                break

            self._buffer += chunk
            received += len(chunk)

            if len(chunk) < self.buffer_size:
                break  # Drained what the kernel had buffered

        if received:
            self.last_activity = time.monotonic()
        return received

    def take_buffer(self) -> bytes:
        """
        Snapshot the buffer and clear it.

        The snapshot is handed to the parser; the connection itself never
        sees the same bytes twice.
        """
        data = bytes(self._buffer)
        self._buffer.clear()
        self.state = ConnectionState.PROCESSING
        return data

    def send_response(self, data: bytes) -> bool:
        """
        Write a complete response.

        The socket is put back in blocking mode with write_timeout so that
        sendall() writes everything before the connection is closed.

        Returns:
            True if the write succeeded, False if it failed (already logged).
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.settimeout(self.write_timeout)
            self.socket.sendall(data)
            self.last_activity = time.monotonic()
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection.

        Sends FIN (shutdown SHUT_WR) before releasing the descriptor so the
        client sees a clean end of stream after the response body. Safe to
        call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

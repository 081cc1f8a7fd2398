"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    socket_server.py  Listening socket + selector (the event loop)
    connection.py     One accepted client: socket, buffer, state

The service runs everything on a single thread:

    accept ──► Connection ──► receive() ... ──► \\r\\n\\r\\n ──► dispatch ──► close

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listener and selector
    "Connection",       # Client socket with its request buffer
    "ConnectionState",  # Connection lifecycle states
]

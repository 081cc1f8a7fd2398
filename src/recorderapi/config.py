"""
=============================================================================
SERVICE CONFIGURATION
=============================================================================

Centralized configuration for the control service. Everything tunable
lives in one dataclass so that the CLI, environment variables and tests
all build the same object.

    ServiceConfig()                    # Defaults: 0.0.0.0:8080
    ServiceConfig(port=0)              # Ephemeral port (tests)
    ServiceConfig.from_env()           # RECORDER_API_* variables

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError


@dataclass
class ServiceConfig:
    """
    Configuration for the control service.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, write_timeout

    EVENT LOOP
    - poll_interval, idle_timeout

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    The recorder is driven by local tooling on the same machine or LAN,
    so the listener is on all interfaces by default.
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    write_timeout: float = 5.0
    """
    Seconds a response write may block before it is abandoned.
    Responses are small, so this only matters for stalled peers.
    """

    # ─────────────────────────────────────────────────────────────────────
    # EVENT LOOP
    # ─────────────────────────────────────────────────────────────────────

    poll_interval: float = 0.5
    """How long serve_forever() waits in select() before rechecking state."""

    idle_timeout: Optional[float] = None
    """
    Close connections that have not completed a request after this many
    seconds. None keeps them open until the peer closes.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """
        Create configuration from environment variables.

        RECORDER_API_HOST          Bind address (default: 0.0.0.0)
        RECORDER_API_PORT          Port (default: 8080)
        RECORDER_API_IDLE_TIMEOUT  Idle connection timeout in seconds
        RECORDER_API_LOG_LEVEL     Logging level (default: INFO)

        Raises:
            ConfigError: If a numeric variable cannot be parsed.
        """
        port = os.getenv("RECORDER_API_PORT", "8080")
        idle_timeout = os.getenv("RECORDER_API_IDLE_TIMEOUT")

        try:
            return cls(
                host=os.getenv("RECORDER_API_HOST", "0.0.0.0"),
                port=int(port),
                idle_timeout=float(idle_timeout) if idle_timeout else None,
                log_level=os.getenv("RECORDER_API_LOG_LEVEL", "INFO"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid environment configuration: {e}") from e

    def validate(self) -> None:
        """
        Validate configuration values.

        Fails fast at construction time rather than on the first request.

        Raises:
            ConfigError: If a value is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ConfigError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.write_timeout <= 0:
            raise ConfigError("write_timeout must be > 0")

        if self.poll_interval <= 0:
            raise ConfigError("poll_interval must be > 0")

        if self.idle_timeout is not None and self.idle_timeout <= 0:
            raise ConfigError("idle_timeout must be > 0")

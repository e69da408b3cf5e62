"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All startup parameters of the API server in one dataclass.

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   1. Command-line arguments (python -m apiserver --port 3000)       │
    │   2. Code (ServerConfig(port=3000))                                 │
    │   3. Defaults below                                                 │
    └─────────────────────────────────────────────────────────────────────┘

Nothing is read from the environment or from files. A server embedded in a
larger program gets exactly the values its caller passed.

=============================================================================
READ TIMEOUT
=============================================================================

read_timeout is a deadline for reading ONE request: request line, headers
and body must all arrive within it, counted from the moment the server
starts waiting:

    client connects ──► sends "GET /we" ──► stalls ... 30s ──► disconnected
    client connects ──► "G" .. "E" .. "T" .. (1 byte/s) 30s ──► disconnected

Each keep-alive request gets a fresh deadline.

It protects worker threads from slow clients and idle keep-alive
connections. It does NOT bound outbound calls made by handlers; those use
their own client timeouts.

=============================================================================
"""

from dataclasses import dataclass
import logging


DEFAULT_SERVER_READ_TIMEOUT = 30  # seconds

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the API server.

    Examples:
        ServerConfig(port=9001)                       # all interfaces
        ServerConfig(host="127.0.0.1", port=0)        # ephemeral port (tests)
        ServerConfig(read_timeout=5, log_level="DEBUG")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = ""
    """
    Interface to bind to. "" = all interfaces, "127.0.0.1" = localhost only.
    """

    port: int = 9001
    """
    Port to listen on. 0 lets the OS pick a free port.
    """

    read_timeout: float = DEFAULT_SERVER_READ_TIMEOUT
    """
    Seconds a connection may wait for request data before it is closed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "apiserver/1.0"
    """Value of the Server response header."""

    @property
    def level(self) -> int:
        """log_level as a logging module constant."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by the server constructor so a bad value fails at startup,
        not on the first request.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.read_timeout is None or self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be > 0, got {self.read_timeout!r}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level!r}. Must be one of {', '.join(LOG_LEVELS)}."
            )

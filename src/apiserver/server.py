"""
=============================================================================
API SERVER
=============================================================================

Ties a route table to the standard library HTTP server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      API SERVER ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  config, logger │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┴────────────────────┐              │
    │            ▼                                         ▼              │
    │    ┌────────────────────┐                  ┌──────────────────┐    │
    │    │ ThreadingHTTPServer│                  │   Route table    │    │
    │    │ (http.server)      │                  │ Router or        │    │
    │    │ one thread per     │                  │ PrefixRouter     │    │
    │    │ connection         │                  │ (frozen)         │    │
    │    └─────────┬──────────┘                  └──────────────────┘    │
    │              ▼                                                       │
    │    ┌────────────────────┐                                           │
    │    │  RequestHandler    │ read deadline = read_timeout              │
    │    │  bytes → request   │                                           │
    │    │  response → bytes  │                                           │
    │    └────────────────────┘                                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ThreadingHTTPServer accepts the connection, starts a thread
    2. RequestHandler starts the read deadline for the next request
    3. http.server parses the request line and headers
    4. RequestHandler reads the body (Content-Length) and builds an
       HTTPRequest carrying the server's logger
    5. HTTPServer.handle() runs the route table against a fresh
       HTTPResponse; exceptions become 500
    6. RequestHandler sends status, headers (Content-Length always set),
       body; the access line is logged
    7. Keep-alive: loop to 3 until the client closes or times out

=============================================================================
LIFECYCLE OF THE SERVER ITSELF
=============================================================================

Created once at process start, serves until the process dies. There is no
shutdown hook and no retry on bind failure: an OSError from bind() ends
the process.

The route table is frozen before the socket is bound. From then on it is
only read, which is what makes lock-free concurrent dispatch safe.

=============================================================================
"""

from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import io
import logging
import socket
import sys
import time
from typing import Optional, Tuple

from .config import DEFAULT_SERVER_READ_TIMEOUT, ServerConfig
from .http import (
    HTTPRequest,
    HTTPResponse,
    Router,
    as_handler,
    error,
)
from .http.router import RouteTable


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("apiserver.access")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _DeadlineReader(io.RawIOBase):
    """
    Socket reader that enforces one deadline across many recv() calls.

    A plain socket timeout restarts on every recv(), so a client sending
    one byte at a time never hits it. Here each recv() only gets the time
    left until `deadline`.
    """

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self.deadline: Optional[float] = None

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.deadline is not None:
            remaining = self.deadline - time.monotonic()
            if remaining <= 0:
                # socket.timeout is what http.server treats as a timed out request
                raise socket.timeout("read deadline exceeded")
            self._sock.settimeout(remaining)
        return self._sock.recv_into(buffer)


class RequestHandler(BaseHTTPRequestHandler):
    """
    Bridge between http.server and the route table.

    One instance per connection. http.server calls do_<METHOD> for every
    request on the connection; all of them go through _dispatch().
    """

    protocol_version = "HTTP/1.1"  # keep-alive, Content-Length required

    server: "_Listener"

    def setup(self) -> None:
        self.timeout = self.server.app.config.read_timeout
        super().setup()

        # Replace the stream from makefile() with one that honours a deadline
        self.rfile.close()
        self._reader = _DeadlineReader(self.connection)
        self.rfile = io.BufferedReader(self._reader)

    def handle_one_request(self) -> None:
        # Fresh deadline per request; it also bounds the keep-alive idle wait
        self._reader.deadline = time.monotonic() + self.timeout
        try:
            super().handle_one_request()
        finally:
            self._end_read()

    def _end_read(self) -> None:
        """Stop the read deadline so response writes get the full timeout."""
        if self._reader.deadline is not None:
            self._reader.deadline = None
            self.connection.settimeout(self.timeout)

    def end_headers(self) -> None:
        # Every response, including send_error(), goes through here first
        self._end_read()
        super().end_headers()

    def version_string(self) -> str:
        return self.server.app.config.server_name

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def _read_body(self) -> Optional[bytes]:
        """Read the request body, or answer an error and return None."""
        if self.headers.get("Transfer-Encoding"):
            self.send_error(HTTPStatus.NOT_IMPLEMENTED, "Transfer-Encoding not supported")
            return None

        raw_length = self.headers.get("Content-Length")
        if raw_length is None:
            return b""
        try:
            length = int(raw_length)
            if length < 0:
                raise ValueError(raw_length)
        except ValueError:
            self.send_error(HTTPStatus.BAD_REQUEST, f"Invalid Content-Length {raw_length!r}")
            return None
        return self.rfile.read(length) if length else b""

    def _dispatch(self) -> None:
        app = self.server.app

        body = self._read_body()
        if body is None:
            return

        request = HTTPRequest.from_target(
            self.command,
            self.path,
            headers=dict(self.headers.items()),
            body=body,
            version=self.request_version,
            client_address=self.client_address[:2],
            logger=app.logger,
        )
        response = app.handle(request)
        self._send(request, response)

    do_GET = _dispatch
    do_HEAD = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_PATCH = _dispatch
    do_DELETE = _dispatch
    do_OPTIONS = _dispatch

    def _send(self, request: HTTPRequest, response: HTTPResponse) -> None:
        body = bytes(response.body)
        headers = dict(response.headers)

        # ─────────────────────────────────────────────────────────────────
        # Content-Length is mandatory on a keep-alive connection, or the
        # client cannot tell where this response ends
        # ─────────────────────────────────────────────────────────────────
        headers.setdefault("Content-Length", str(len(body)))
        if body:
            headers.setdefault("Content-Type", "text/plain; charset=utf-8")

        self.send_response(int(response.status))
        for name, value in headers.items():
            self.send_header(name, value)
        self.end_headers()

        if request.method != "HEAD" and body:
            self.wfile.write(body)

    # =========================================================================
    # LOGGING
    # =========================================================================
    #
    # http.server writes its own log lines to stderr. Route them into the
    # logging tree instead so they share format and destination.
    #

    def log_message(self, format: str, *args) -> None:
        access_logger.info("%s - %s", self.address_string(), format % args)

    def log_error(self, format: str, *args) -> None:
        self.server.app.logger.warning("%s - %s", self.address_string(), format % args)


class _Listener(ThreadingHTTPServer):
    """ThreadingHTTPServer that knows which HTTPServer it serves."""

    daemon_threads = True

    def __init__(self, address: Tuple[str, int], app: "HTTPServer"):
        self.app = app
        super().__init__(address, RequestHandler)


class HTTPServer:
    """
    API server: a frozen route table behind a threading HTTP listener.

    =========================================================================
    USAGE
    =========================================================================

        router = Router()
        router.register("weather", WeatherHandler().handler)

        server = HTTPServer(ServerConfig(port=9001), routes=router)
        server.run()                 # blocks forever

    The route table may also be a PrefixRouter, a plain dict of
    {"/pattern": handler} (wrapped in a PrefixRouter), or a single
    handler function. Without one, every request gets 404.

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None, routes: Optional[RouteTable] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.routes = routes if routes is not None else Router()
        self._handler = as_handler(self.routes)

        # Handed to every request as request.logger
        self.logger = logger

        self._listener: Optional[_Listener] = None

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run the route table for one request and return the filled sink.

        Usable without a socket, which is how most tests drive it.
        """
        response = HTTPResponse()
        try:
            self._handler(response, request)
        except Exception as e:
            self.logger.exception("Handler error for %s %s: %s", request.method, request.path, e)
            response = HTTPResponse()
            error(response, "Internal Server Error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return response

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def freeze(self) -> None:
        """Make the route table read-only (no-op for immutable tables)."""
        freeze = getattr(self.routes, "freeze", None)
        if freeze is not None:
            freeze()

    def bind(self) -> ThreadingHTTPServer:
        """
        Freeze the routes and bind the listening socket.

        Raises:
            OSError: If the address cannot be bound.
        """
        self.freeze()
        if self._listener is None:
            address = (self.config.host, self.config.port)
            try:
                self._listener = _Listener(address, self)
            except OSError as e:
                self.logger.error("Failed to bind to %s:%d: %s", self.config.host, self.config.port, e)
                raise
        return self._listener

    @property
    def listener(self) -> Optional[ThreadingHTTPServer]:
        """The underlying ThreadingHTTPServer, once bound."""
        return self._listener

    @property
    def server_address(self) -> Tuple[str, int]:
        """The bound (host, port); port 0 in the config resolves here."""
        if self._listener is None:
            return (self.config.host, self.config.port)
        return self._listener.server_address[:2]

    def serve_forever(self) -> None:
        """Bind (if needed) and serve until the process ends. Blocks."""
        self._setup_logging()
        listener = self.bind()

        host, port = self.server_address
        self.logger.info(
            "Starting API server on %s:%d (read timeout %ss)",
            host or "*", port, self.config.read_timeout,
        )
        for line in getattr(self._handler, "routes", lambda: [])():
            self.logger.info("  route %s", line)

        try:
            listener.serve_forever()
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")
            raise
        finally:
            listener.server_close()

    def run(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """
        Start the server (blocking), optionally overriding host/port.
        """
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port
        self.config.validate()
        self.serve_forever()

    def _setup_logging(self) -> None:
        """Timestamped log lines on standard output."""
        logging.basicConfig(
            level=self.config.level,
            format=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            stream=sys.stdout,
        )
        logging.getLogger("apiserver").setLevel(self.config.level)


# =============================================================================
# ONE-CALL BOOTSTRAP
# =============================================================================

def new_server(
    host: str,
    port: int,
    timeout: float = DEFAULT_SERVER_READ_TIMEOUT,
    handlers: Optional[RouteTable] = None,
) -> None:
    """
    Serve `handlers` on host:port with a read timeout. Blocks forever.

    Example:
        new_server("192.168.1.1", 9001, 30, {
            "/weather/": WeatherHandler().handler,
        })
    """
    config = ServerConfig(host=host, port=port, read_timeout=timeout)
    HTTPServer(config, routes=handlers).serve_forever()


def new_local_server(
    port: int,
    timeout: float = DEFAULT_SERVER_READ_TIMEOUT,
    handlers: Optional[RouteTable] = None,
) -> None:
    """new_server() on all interfaces."""
    new_server("", port, timeout, handlers)

"""
=============================================================================
APISERVER - Minimal HTTP API Scaffolding
=============================================================================

A small toolkit for building HTTP APIs out of plain functions: register a
handler under a path tag (or a path pattern), wrap body-producing functions
in a response formatter, and start a threaded server with a read timeout.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     APISERVER ARCHITECTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. DISPATCH                                                        │
    │      - Router: first path segment → handler, fallback on miss      │
    │      - PrefixRouter: static pattern map, longest prefix wins       │
    │                                                                      │
    │   2. RESPONSE FORMATTER                                              │
    │      - respond(media, charset, fn): Content-Type + byte length     │
    │                                                                      │
    │   3. SERVER BOOTSTRAP                                                │
    │      - host, port, read timeout; timestamped logging on stdout     │
    │                                                                      │
    │   4. HMAC DIGEST CHECK                                               │
    │      - digest_matches(key, term, digest) with HMAC-SHA1            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    apiserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m apiserver)
    ├── server.py            # HTTPServer, new_server, new_local_server
    ├── config.py            # ServerConfig dataclass
    ├── digest.py            # HMAC-SHA1 query digests
    ├── http/                # Everything a handler touches
    │   ├── request.py       # HTTPRequest
    │   ├── response.py      # HTTPResponse sink, error, not_found
    │   ├── media_types.py   # Short format names → media types
    │   ├── respond.py       # Response formatter
    │   └── router.py        # Router, PrefixRouter
    └── handlers/            # Example handlers
        ├── weather.py       # NOAA current observations proxy
        └── post_logger.py   # POST form echo

=============================================================================
QUICK START
=============================================================================

    from apiserver import Router, new_local_server, respond

    def hello(response, request):
        return '{"hello": "world"}'

    router = Router()
    router.register("hello", respond("application/json", "utf-8", hello))

    new_local_server(9001, 30, router)      # GET /hello

=============================================================================
"""

__version__ = "1.0.0"

from .config import DEFAULT_SERVER_READ_TIMEOUT, ServerConfig
from .digest import compute_digest, digest_matches, require_digest
from .http import (
    DEFAULT_HANDLER_TAG,
    HTTPRequest,
    HTTPResponse,
    PrefixRouter,
    Router,
    RouteTableFrozenError,
    error,
    not_found,
    parse_handler_tag,
    respond,
    respond_with,
)
from .server import HTTPServer, new_local_server, new_server

__all__ = [
    # Server
    "HTTPServer",
    "ServerConfig",
    "DEFAULT_SERVER_READ_TIMEOUT",
    "new_server",
    "new_local_server",

    # Dispatch
    "Router",
    "PrefixRouter",
    "RouteTableFrozenError",
    "DEFAULT_HANDLER_TAG",
    "parse_handler_tag",

    # Request / response
    "HTTPRequest",
    "HTTPResponse",
    "error",
    "not_found",
    "respond",
    "respond_with",

    # Digest
    "compute_digest",
    "digest_matches",
    "require_digest",
]

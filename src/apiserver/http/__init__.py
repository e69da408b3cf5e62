"""
=============================================================================
HTTP LAYER
=============================================================================

Everything a handler touches: the request it reads, the response sink it
writes, the formatter that wraps body-producing functions, and the two
route tables that pick a handler for each request.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST (request.py)                                                │
    │   HTTPRequest: method, path, query, headers, body, post_form,       │
    │   and the logger of the server handling it                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE (response.py)                                              │
    │   HTTPResponse sink: set_header / write_header / write              │
    │   not_found, error, redirect                                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │ FORMATTER (respond.py, media_types.py)                              │
    │   respond(media, charset, fn): Content-Type + Content-Length        │
    ├─────────────────────────────────────────────────────────────────────┤
    │ DISPATCH (router.py)                                                │
    │   Router: first path segment → handler, warning + default on miss  │
    │   PrefixRouter: static pattern map, longest prefix wins             │
    └─────────────────────────────────────────────────────────────────────┘

Every handler has the same signature:

    def handler(response: HTTPResponse, request: HTTPRequest) -> None

=============================================================================
"""

from .request import HTTPRequest, parse_form
from .response import HTTPResponse, error, not_found, redirect
from .media_types import RESPONSE_FORMATS, content_type, get_media_type
from .respond import Handler, BodyFunc, respond, respond_with
from .router import (
    DEFAULT_HANDLER_TAG,
    PrefixRouter,
    RouteMatch,
    Router,
    RouteTableFrozenError,
    as_handler,
    parse_handler_tag,
)

__all__ = [
    # Request
    "HTTPRequest",
    "parse_form",

    # Response
    "HTTPResponse",
    "error",
    "not_found",
    "redirect",

    # Formatting
    "RESPONSE_FORMATS",
    "content_type",
    "get_media_type",
    "Handler",
    "BodyFunc",
    "respond",
    "respond_with",

    # Dispatch
    "DEFAULT_HANDLER_TAG",
    "PrefixRouter",
    "RouteMatch",
    "Router",
    "RouteTableFrozenError",
    "as_handler",
    "parse_handler_tag",
]

"""
=============================================================================
HTTP RESPONSE SINK
=============================================================================

The object every handler writes its reply into.

=============================================================================
WHY A SINK INSTEAD OF A RETURN VALUE?
=============================================================================

Handlers in this package do not return a response. They receive an empty
HTTPResponse and fill it in, exactly like a writer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      HANDLER CONTRACT                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   server creates         handler mutates           server sends     │
    │   HTTPResponse()  ─────► set_header(...)   ─────►  status line,     │
    │   status = 200           write_header(404)         headers, body    │
    │   headers = {}           write("<xml/>")                            │
    │   body = b""                                                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

This keeps the response formatter (see respond.py) trivial: it sets a
header, lets the inner function produce a string, then writes it.

=============================================================================
COMMIT SEMANTICS
=============================================================================

A response is COMMITTED by the first write_header() or write() call.
After that the status code is fixed:

    response.write_header(404)   # status = 404, committed
    response.write_header(500)   # ignored, logged as superfluous
    response.write("oops")       # body appended, status still 404

Headers may still be changed after commit because nothing is sent to the
socket until the handler returns.

=============================================================================
"""

from dataclasses import dataclass, field
import html
from http import HTTPStatus
import logging
from typing import Dict, Union


logger = logging.getLogger(__name__)


def canonical_header(name: str) -> str:
    """
    Canonicalise a header name: "content-type" → "Content-Type".

    Header names are case-insensitive (RFC 7230), so every lookup goes
    through this function to make "content-length" and "Content-Length"
    refer to the same entry.
    """
    return "-".join(part.capitalize() for part in name.strip().split("-"))


@dataclass
class HTTPResponse:
    """
    Mutable response sink handed to every handler.

    =========================================================================
    USAGE
    =========================================================================

        def hello(response, request):
            response.set_header("Content-Type", "text/plain; charset=utf-8")
            response.write("hello")

        def missing(response, request):
            response.write_header(HTTPStatus.NOT_FOUND)
            response.write("nothing here")

    =========================================================================
    """

    status: int = HTTPStatus.OK                              # Status code
    headers: Dict[str, str] = field(default_factory=dict)    # Canonical names
    body: bytearray = field(default_factory=bytearray)       # Accumulated body

    _committed: bool = field(default=False, repr=False)

    @property
    def committed(self) -> bool:
        """True once write_header() or write() has been called."""
        return self._committed

    # =========================================================================
    # HEADERS
    # =========================================================================

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set (or replace) a header. Returns self for chaining."""
        self.headers[canonical_header(name)] = str(value)
        return self

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(canonical_header(name), default)

    def del_header(self, name: str) -> None:
        """Remove a header if present."""
        self.headers.pop(canonical_header(name), None)

    # =========================================================================
    # STATUS AND BODY
    # =========================================================================

    def write_header(self, status: int) -> None:
        """
        Set the status code.

        Only the first call before the response is committed takes effect.
        """
        if self._committed:
            logger.warning(
                "superfluous write_header call (status %d already set, got %d)",
                int(self.status), int(status),
            )
            return
        self.status = status
        self._committed = True

    def write(self, data: Union[str, bytes], encoding: str = "utf-8") -> int:
        """
        Append data to the body.

        Strings are encoded with `encoding`. Returns the number of bytes
        appended.
        """
        chunk = data.encode(encoding) if isinstance(data, str) else bytes(data)
        self._committed = True
        self.body.extend(chunk)
        return len(chunk)


# =============================================================================
# STOCK HANDLERS
# =============================================================================
#
# Small helpers with the handler signature (response, request) or close to
# it. not_found() is the fallback handler of both routers.
#
# =============================================================================

def error(response: HTTPResponse, message: str, status: int) -> None:
    """
    Reply with a plain text error message and the given status code.

    The message is terminated with a newline, and the body is marked
    nosniff so browsers never render it as HTML.
    """
    response.set_header("Content-Type", "text/plain; charset=utf-8")
    response.set_header("X-Content-Type-Options", "nosniff")
    response.write_header(status)
    response.write(message + "\n")


def not_found(response: HTTPResponse, request) -> None:
    """The default fallback handler: 404 page not found."""
    error(response, "404 page not found", HTTPStatus.NOT_FOUND)


def redirect(
    response: HTTPResponse,
    request,
    location: str,
    status: int = HTTPStatus.MOVED_PERMANENTLY,
) -> None:
    """Reply with a redirect to `location`."""
    response.set_header("Location", location)
    if request.method in ("GET", "HEAD"):
        response.set_header("Content-Type", "text/html; charset=utf-8")
        response.write_header(status)
        response.write(f'<a href="{html.escape(location)}">{HTTPStatus(status).phrase}</a>.\n')
    else:
        response.write_header(status)

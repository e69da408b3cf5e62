"""
=============================================================================
HTTP REQUEST
=============================================================================

Structured view of one inbound request, handed to every handler together
with the response sink.

The standard library server (http.server) already does the byte-level
parsing: request line, headers, keep-alive. This module turns what it
produced into a plain dataclass that handlers and tests can build and
inspect without a socket.

=============================================================================
REQUEST TARGET ANATOMY
=============================================================================

    POST /logger?debug=1 HTTP/1.1
         ───┬─── ───┬───
            │       │
          path    raw_query  ──► query_params {"debug": ["1"]}

    Content-Type: application/x-www-form-urlencoded

    a=1&a=2&b=x              ──► post_form {"a": ["1", "2"], "b": ["x"]}

Paths are percent-decoded ("/weather/K%53FO" → "/weather/KSFO"), the query
string is kept raw for redirects and parsed for lookups.

=============================================================================
FORM PARSING RULES
=============================================================================

    ┌──────────────┬──────────────────────────────────────┬──────────────┐
    │ Method       │ Content-Type                         │ post_form    │
    ├──────────────┼──────────────────────────────────────┼──────────────┤
    │ POST/PUT/    │ application/x-www-form-urlencoded    │ parsed body  │
    │ PATCH        │ anything else (or missing)           │ {}           │
    │ others       │ any                                  │ {}           │
    └──────────────┴──────────────────────────────────────┴──────────────┘

Field order follows the order of first appearance in the body, and
repeated names collect every value: "a=1&b=x&a=2" → {"a": ["1", "2"],
"b": ["x"]}.

=============================================================================
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, unquote, urlsplit


FORM_URLENCODED = "application/x-www-form-urlencoded"
FORM_METHODS = frozenset({"POST", "PUT", "PATCH"})


def parse_form(data: str) -> Dict[str, list[str]]:
    """
    Parse an urlencoded string into an insertion-ordered dict of lists.

    Blank values are kept ("a=&b=1" → {"a": [""], "b": ["1"]}).
    """
    return parse_qs(data, keep_blank_values=True)


@dataclass
class HTTPRequest:
    """
    Represents an inbound HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         HTTP method, upper case ("GET", "POST", ...)

        path:           Percent-decoded path without the query string

        raw_query:      Query string as received ("a=1&b=2")

        headers:        Header dict with LOWERCASE keys

        query_params:   Parsed query string, dict of lists

        body:           Raw body bytes (read using Content-Length)

        client_address: (ip, port) of the client

        logger:         Logger of the server handling this request.
                        Handlers log through it instead of a module
                        global, so tests can swap it out per request.

    =========================================================================
    """

    method: str
    path: str
    raw_query: str = ""
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("apiserver"), repr=False
    )

    _post_form: Optional[Dict[str, list[str]]] = field(default=None, repr=False)

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b"",
        **kwargs: Any,
    ) -> "HTTPRequest":
        """
        Build a request from a raw request target ("/path?query").

        Header names are lower-cased here, so callers may pass them in any
        case.

        Example:
            HTTPRequest.from_target("GET", "/weather/KSFO?units=metric")
        """
        split = urlsplit(target)
        return cls(
            method=method.upper(),
            path=unquote(split.path),
            raw_query=split.query,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            query_params=parse_form(split.query),
            body=body,
            **kwargs,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def content_type(self) -> Optional[str]:
        """
        Content-Type without parameters, lower case.

        "application/x-www-form-urlencoded; charset=utf-8"
            → "application/x-www-form-urlencoded"
        """
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        """Content-Length as int, 0 when missing or invalid."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def post_form(self) -> Dict[str, list[str]]:
        """
        Form fields from an urlencoded request body.

        Parsed lazily and cached. Only bodies of POST, PUT and PATCH
        requests with an urlencoded Content-Type are parsed; anything else
        yields an empty dict. Undecodable bytes are replaced rather than
        rejected.
        """
        if self._post_form is None:
            if self.method in FORM_METHODS and self.content_type == FORM_URLENCODED:
                self._post_form = parse_form(self.body.decode("utf-8", errors="replace"))
            else:
                self._post_form = {}
        return self._post_form

    @property
    def form(self) -> Dict[str, list[str]]:
        """Body fields merged with query parameters, body values first."""
        merged = {name: list(values) for name, values in self.post_form.items()}
        for name, values in self.query_params.items():
            merged.setdefault(name, []).extend(values)
        return merged

    # =========================================================================
    # ACCESSOR METHODS
    # =========================================================================

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter, or default."""
        values = self.query_params.get(name, [])
        return values[0] if values else default

    def get_query_list(self, name: str) -> list[str]:
        """All values of a query parameter."""
        return self.query_params.get(name, [])

    def get_form(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a form field (body first, then query)."""
        values = self.form.get(name, [])
        return values[0] if values else default

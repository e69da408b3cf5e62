"""
=============================================================================
REQUEST DISPATCH
=============================================================================

Two ways to map a request path to a handler:

1. Router        - a tag registry: the FIRST PATH SEGMENT picks the handler
2. PrefixRouter  - a static map of path patterns, longest prefix wins

Both are plain route tables. They are built before the server starts and
never change while it is serving.

=============================================================================
TAG DISPATCH (Router)
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TAG DISPATCH FLOW                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /weather/KSFO                                                  │
    │        │                                                             │
    │        ▼                                                             │
    │   "/weather/KSFO".split("/") → ["", "weather", "KSFO"]              │
    │                                      ───┬───                        │
    │                                         └── tag = parts[1]           │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌──────────────────────────────────────────┐                      │
    │   │  ""        → not_found   (default)       │                      │
    │   │  "weather" → weather     ← MATCH!        │                      │
    │   │  "logger"  → log_post_data               │                      │
    │   └──────────────────────────────────────────┘                      │
    │        │                                                             │
    │        ▼                                                             │
    │   weather(response, request)                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

TOKENIZER CONTRACT (parse_handler_tag):

    path                 parts                      tag
    ─────────────────    ───────────────────────    ──────────
    ""                   [""]                       "" (default)
    "weather"            ["weather"]                "" (default)
    "/"                  ["", ""]                   ""
    "/weather"           ["", "weather"]            "weather"
    "/weather/KSFO"      ["", "weather", "KSFO"]    "weather"
    "//weather"          ["", "", "weather"]        ""

A miss logs a warning and runs the default handler. Exactly one handler
runs per request.

=============================================================================
PREFIX DISPATCH (PrefixRouter)
=============================================================================

    Patterns:   "/weather/"   (ends in "/": matches the whole subtree)
                "/logger"     (no trailing "/": exact match only)

    /weather/KSFO   → "/weather/"
    /weather        → 301 redirect to /weather/
    /logger         → "/logger"
    /logger/extra   → 404

Longest pattern wins, so "/api/v2/" beats "/api/" for "/api/v2/users".
Misses get the stock 404 without a warning.

=============================================================================
INTERVIEW QUESTIONS ABOUT THIS DESIGN
=============================================================================

Q: "Why is there no lock around the route table?"
A: "Writes only happen before serving starts. The server calls freeze()
   before binding, and every write after that raises. Concurrent threads
   only ever read a dict that no longer changes."

Q: "What's the cost of a tag lookup?"
A: "One str.split and one dict lookup. O(len(path)) for the split, O(1)
   for the lookup, independent of how many handlers are registered."

=============================================================================
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Union

from .request import HTTPRequest
from .respond import Handler
from .response import HTTPResponse, not_found, redirect


DEFAULT_HANDLER_TAG = ""


class RouteTableFrozenError(RuntimeError):
    """Raised when a route table is modified after the server started."""


def parse_handler_tag(path: str) -> str:
    """
    Get the first segment after the leading slash.

    "/edit/blah" → "edit". Paths with fewer than two "/"-delimited
    components resolve to DEFAULT_HANDLER_TAG.
    """
    parts = path.split("/")
    if len(parts) >= 2:
        return parts[1]
    return DEFAULT_HANDLER_TAG


@dataclass(frozen=True)
class RouteMatch:
    """
    Result of a tag lookup.

    `found` is False when `handler` is the fallback, so callers can tell
    a registered "" tag apart from a miss.
    """
    tag: str
    handler: Handler
    found: bool


class Router:
    """
    Tag registry and dispatcher.

    ==========================================================================
    USAGE
    ==========================================================================

        router = Router()

        @router.route("status")
        def status(response, request):
            response.write("ok")

        router.register("weather", weather.handler)
        router.set_default(my_404)

        HTTPServer(config, routes=router).run()

    ==========================================================================
    """

    def __init__(self, default: Handler = not_found):
        self._handlers: Dict[str, Handler] = {DEFAULT_HANDLER_TAG: default}
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def _check_writable(self) -> None:
        if self._frozen:
            raise RouteTableFrozenError("route table is frozen; register handlers before serving")

    def register(self, tag: str, handler: Handler) -> None:
        """
        Map `tag` to `handler`, replacing any previous handler for it.

        Raises:
            ValueError: If the tag is not a non-empty string. The empty tag
                        is reserved for the default handler (set_default()).
            RouteTableFrozenError: If called after freeze().
        """
        self._check_writable()
        if not isinstance(tag, str) or not tag:
            raise ValueError(f"handler tag must be a non-empty string, got {tag!r}")
        self._handlers[tag] = handler

    def route(self, tag: str) -> Callable[[Handler], Handler]:
        """Decorator form of register()."""
        def decorator(handler: Handler) -> Handler:
            self.register(tag, handler)
            return handler
        return decorator

    def set_default(self, handler: Handler) -> None:
        """Replace the fallback handler (initially not_found)."""
        self._check_writable()
        self._handlers[DEFAULT_HANDLER_TAG] = handler

    def freeze(self) -> None:
        """Make the table read-only. Idempotent."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # DISPATCH
    # =========================================================================

    @property
    def default(self) -> Handler:
        return self._handlers[DEFAULT_HANDLER_TAG]

    def match(self, path: str) -> RouteMatch:
        """Resolve a path to its handler (or the fallback)."""
        tag = parse_handler_tag(path)
        handler = self._handlers.get(tag)
        if handler is None:
            return RouteMatch(tag=tag, handler=self.default, found=False)
        return RouteMatch(tag=tag, handler=handler, found=True)

    def handle(self, response: HTTPResponse, request: HTTPRequest) -> None:
        """Run exactly one handler for the request."""
        match = self.match(request.path)
        if not match.found:
            request.logger.warning("no handler defined for '%s'", match.tag)
        match.handler(response, request)

    __call__ = handle

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def tags(self) -> List[str]:
        """Registered tags, excluding the default."""
        return [tag for tag in self._handlers if tag != DEFAULT_HANDLER_TAG]

    def routes(self) -> List[str]:
        """Human-readable route list for the startup log."""
        lines = [f"/{tag}  → {_handler_name(h)}" for tag, h in self._handlers.items()
                 if tag != DEFAULT_HANDLER_TAG]
        lines.append(f"(default) → {_handler_name(self.default)}")
        return lines


class PrefixRouter:
    """
    Static route map keyed by path pattern.

    The table is copied at construction and exposed read-only, so there is
    nothing to freeze.

    ==========================================================================
    USAGE
    ==========================================================================

        routes = PrefixRouter({
            "/weather/": respond("text/xml", "utf-8", get_weather),
            "/logger": respond("application/json", "utf-8", log_post_data),
        })

    ==========================================================================
    """

    def __init__(self, handlers: Mapping[str, Handler]):
        table: Dict[str, Handler] = {}
        for pattern, handler in handlers.items():
            if not isinstance(pattern, str) or not pattern.startswith("/"):
                raise ValueError(f"route pattern must start with '/', got {pattern!r}")
            table[pattern] = handler
        self._table = MappingProxyType(table)
        # Longest first, so the first hit is the most specific one
        self._ordered = sorted(table, key=len, reverse=True)

    @property
    def patterns(self) -> Mapping[str, Handler]:
        return self._table

    def match(self, path: str) -> Union[str, None]:
        """Return the pattern that serves `path`, or None."""
        for pattern in self._ordered:
            if pattern.endswith("/"):
                if path.startswith(pattern):
                    return pattern
            elif path == pattern:
                return pattern
        return None

    def handle(self, response: HTTPResponse, request: HTTPRequest) -> None:
        pattern = self.match(request.path)
        if pattern is not None:
            self._table[pattern](response, request)
            return

        # "/weather" with only "/weather/" registered: send the client to
        # the subtree instead of answering 404
        subtree = request.path + "/"
        if subtree in self._table:
            location = subtree + ("?" + request.raw_query if request.raw_query else "")
            redirect(response, request, location)
            return

        not_found(response, request)

    __call__ = handle

    def routes(self) -> List[str]:
        return [f"{pattern}  → {_handler_name(h)}" for pattern, h in self._table.items()]


RouteTable = Union[Router, PrefixRouter, Mapping[str, Handler], Handler]


def as_handler(routes: RouteTable) -> Handler:
    """
    Normalise anything the server accepts as a route table.

    Router / PrefixRouter are used as is, a plain mapping becomes a
    PrefixRouter, and a bare callable is taken as the root handler.
    """
    if isinstance(routes, (Router, PrefixRouter)):
        return routes
    if isinstance(routes, Mapping):
        return PrefixRouter(routes)
    if callable(routes):
        return routes
    raise TypeError(f"cannot use {type(routes).__name__} as a route table")


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__name__

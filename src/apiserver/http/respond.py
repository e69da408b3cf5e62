"""
=============================================================================
RESPONSE FORMATTER
=============================================================================

Wraps a function that produces a body STRING into a full handler that
sets Content-Type and Content-Length the same way for every endpoint.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  respond("text/xml", "utf-8", fn)                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Content-Type: text/xml; charset=utf-8                          │
    │   2. body = fn(response, request)      ← may set headers / status  │
    │   3. Content-Length: len(body.encode("utf-8"))                      │
    │   4. response.write(body)                                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Content-Length counts BYTES, not characters: "é" is one character but two
bytes in UTF-8, and a client trusting a character count would truncate the
body.

A body function may also return BYTES. They are written as they are,
without re-encoding, for upstream payloads that must pass through intact
(the charset in Content-Type is then only as true as those bytes).

There is no error path. If fn raises, the exception propagates to the
server, which logs it and answers 500.

=============================================================================
"""

from functools import wraps
from typing import Callable, Union

from .media_types import content_type, get_media_type
from .request import HTTPRequest
from .response import HTTPResponse


Handler = Callable[[HTTPResponse, HTTPRequest], None]
BodyFunc = Callable[[HTTPResponse, HTTPRequest], Union[str, bytes]]


def respond(media_type: str, charset: str, fn: BodyFunc) -> Handler:
    """
    Build a handler that formats the string returned by `fn`.

    Args:
        media_type: e.g. "application/json"
        charset: e.g. "utf-8". Also used to encode the body.
        fn: Produces the body (str, or bytes passed through as is);
            receives the response sink and the request.

    Returns:
        A handler with the (response, request) signature.

    Example:
        def hello(response, request):
            return '{"hello": "world"}'

        router.register("hello", respond("application/json", "utf-8", hello))
    """
    header_value = content_type(media_type, charset)

    @wraps(fn)
    def handler(response: HTTPResponse, request: HTTPRequest) -> None:
        response.set_header("Content-Type", header_value)
        body = fn(response, request)
        data = body if isinstance(body, bytes) else body.encode(charset)
        response.set_header("Content-Length", str(len(data)))
        response.write(data)

    return handler


def respond_with(fmt: str, charset: str = "utf-8") -> Callable[[BodyFunc], Handler]:
    """
    Decorator form of respond() using a short format name.

        @respond_with("json")
        def status(response, request):
            return '{"ok": true}'
    """
    media_type = get_media_type(fmt)

    def decorator(fn: BodyFunc) -> Handler:
        return respond(media_type, charset, fn)

    return decorator

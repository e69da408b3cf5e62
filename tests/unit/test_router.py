"""
Unit tests for tag dispatch and the static prefix map.
"""

import logging

import pytest

from apiserver.http.router import (
    DEFAULT_HANDLER_TAG,
    PrefixRouter,
    Router,
    RouteTableFrozenError,
    as_handler,
    parse_handler_tag,
)
from apiserver.http.request import HTTPRequest
from apiserver.http.response import HTTPResponse

from conftest import make_request


def recording_handler(name: str, calls: list):
    """Handler that records its name when invoked."""
    def handler(response, request):
        calls.append(name)
        response.write(name)
    handler.__qualname__ = name
    return handler


class TestParseHandlerTag:
    """Tests for the path tokenizer."""

    @pytest.mark.parametrize("path", ["", "weather", "noslash"])
    def test_single_component_is_default(self, path):
        """Paths without a second component resolve to the default tag."""
        assert parse_handler_tag(path) == DEFAULT_HANDLER_TAG

    @pytest.mark.parametrize("path,tag", [
        ("/", ""),
        ("/weather", "weather"),
        ("/weather/", "weather"),
        ("/weather/KSFO", "weather"),
        ("/edit/blah/more", "edit"),
        ("//weather", ""),
    ])
    def test_first_segment(self, path, tag):
        """The tag is the segment right after the leading slash."""
        assert parse_handler_tag(path) == tag


class TestRouter:
    """Tests for Router."""

    def test_dispatch_to_registered_tag(self):
        """Only the handler registered for the tag runs."""
        calls = []
        router = Router()
        router.register("weather", recording_handler("weather", calls))
        router.register("logger", recording_handler("logger", calls))

        response = HTTPResponse()
        router(response, make_request("GET", "/weather/KSFO"))

        assert calls == ["weather"]
        assert bytes(response.body) == b"weather"

    def test_miss_runs_default_and_warns(self, caplog):
        """Unknown tags log a warning and fall back to 404."""
        caplog.set_level(logging.DEBUG, logger="apiserver")
        router = Router()

        response = HTTPResponse()
        router.handle(response, make_request("GET", "/nope/1"))

        assert response.status == 404
        assert bytes(response.body) == b"404 page not found\n"
        assert "no handler defined for 'nope'" in caplog.text

    def test_warning_goes_to_request_logger(self, caplog):
        """The miss is logged through the logger carried by the request."""
        caplog.set_level(logging.DEBUG, logger="custom")
        request = make_request("GET", "/missing", logger=logging.getLogger("custom"))

        Router().handle(HTTPResponse(), request)

        assert [r.name for r in caplog.records] == ["custom"]

    @pytest.mark.parametrize("path", ["", "/", "weather"])
    def test_short_paths_use_default(self, path):
        """Paths with zero or one segments go to the default handler."""
        calls = []
        router = Router(default=recording_handler("default", calls))
        router.register("weather", recording_handler("weather", calls))

        router.handle(HTTPResponse(), HTTPRequest(method="GET", path=path))

        assert calls == ["default"]

    def test_set_default(self):
        """set_default() replaces the fallback handler."""
        calls = []
        router = Router()
        router.set_default(recording_handler("fallback", calls))

        router.handle(HTTPResponse(), make_request("GET", "/unknown"))

        assert calls == ["fallback"]
        assert router.match("/unknown").found is False

    def test_register_replaces(self):
        """Registering a tag twice keeps the last handler."""
        calls = []
        router = Router()
        router.register("weather", recording_handler("first", calls))
        router.register("weather", recording_handler("second", calls))

        router.handle(HTTPResponse(), make_request("GET", "/weather"))

        assert calls == ["second"]
        assert router.tags() == ["weather"]

    def test_route_decorator(self):
        """route() registers and returns the function unchanged."""
        router = Router()

        @router.route("status")
        def status(response, request):
            response.write("ok")

        match = router.match("/status")
        assert match.found
        assert match.handler is status

    @pytest.mark.parametrize("tag", ["", None, 5])
    def test_invalid_tag(self, tag):
        """Empty or non-string tags are rejected."""
        with pytest.raises(ValueError):
            Router().register(tag, lambda response, request: None)

    def test_frozen_rejects_writes(self):
        """After freeze() the table cannot change."""
        router = Router()
        router.register("a", lambda response, request: None)
        router.freeze()

        assert router.frozen
        with pytest.raises(RouteTableFrozenError):
            router.register("b", lambda response, request: None)
        with pytest.raises(RouteTableFrozenError):
            router.set_default(lambda response, request: None)
        assert router.match("/a").found

    def test_routes_listing(self):
        """routes() lists tags and the default handler."""
        calls = []
        router = Router()
        router.register("weather", recording_handler("get_weather", calls))

        lines = router.routes()

        assert lines[0].startswith("/weather")
        assert "get_weather" in lines[0]
        assert lines[-1].startswith("(default)")


class TestPrefixRouter:
    """Tests for PrefixRouter."""

    def test_subtree_pattern(self):
        """A pattern ending in "/" matches everything below it."""
        router = PrefixRouter({"/weather/": lambda response, request: None})

        assert router.match("/weather/KSFO") == "/weather/"
        assert router.match("/weather/") == "/weather/"
        assert router.match("/weatherman") is None

    def test_exact_pattern(self):
        """A pattern without trailing slash matches only itself."""
        router = PrefixRouter({"/logger": lambda response, request: None})

        assert router.match("/logger") == "/logger"
        assert router.match("/logger/extra") is None

    def test_longest_prefix_wins(self):
        """More specific patterns take precedence."""
        calls = []
        router = PrefixRouter({
            "/api/": recording_handler("api", calls),
            "/api/v2/": recording_handler("v2", calls),
        })

        router.handle(HTTPResponse(), make_request("GET", "/api/v2/users"))
        router.handle(HTTPResponse(), make_request("GET", "/api/v1/users"))

        assert calls == ["v2", "api"]

    def test_redirect_to_subtree(self):
        """"/weather" redirects to "/weather/" keeping the query."""
        router = PrefixRouter({"/weather/": lambda response, request: None})

        response = HTTPResponse()
        router.handle(response, make_request("GET", "/weather?units=c"))

        assert response.status == 301
        assert response.get_header("Location") == "/weather/?units=c"

    def test_miss_is_404(self):
        """Unmatched paths get the stock 404."""
        router = PrefixRouter({"/logger": lambda response, request: None})

        response = HTTPResponse()
        router.handle(response, make_request("GET", "/other"))

        assert response.status == 404

    def test_table_is_read_only(self):
        """The pattern table cannot be modified after construction."""
        handlers = {"/logger": lambda response, request: None}
        router = PrefixRouter(handlers)
        handlers["/other"] = lambda response, request: None

        assert "/other" not in router.patterns
        with pytest.raises(TypeError):
            router.patterns["/x"] = lambda response, request: None

    def test_pattern_must_start_with_slash(self):
        """Relative patterns are rejected."""
        with pytest.raises(ValueError):
            PrefixRouter({"weather/": lambda response, request: None})


class TestAsHandler:
    """Tests for route table normalisation."""

    def test_mapping_becomes_prefix_router(self):
        assert isinstance(as_handler({"/a": lambda response, request: None}), PrefixRouter)

    def test_router_and_callable_pass_through(self):
        router = Router()
        fn = lambda response, request: None  # noqa: E731
        assert as_handler(router) is router
        assert as_handler(fn) is fn

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            as_handler(42)

"""
Unit tests for HTTPServer request handling and the CLI route tables,
without opening sockets.
"""

import logging

import pytest

from apiserver import HTTPServer, ServerConfig
from apiserver.__main__ import build_routes, main
from apiserver.http import PrefixRouter, Router, RouteTableFrozenError

from conftest import form_request, make_request


class TestHandle:
    """Tests for HTTPServer.handle()."""

    def test_no_routes_is_404(self):
        server = HTTPServer(ServerConfig(port=0))
        response = server.handle(make_request("GET", "/anything"))
        assert response.status == 404

    def test_handler_exception_is_500(self, caplog):
        caplog.set_level(logging.ERROR, logger="apiserver")

        def broken(response, request):
            response.write("partial")
            raise RuntimeError("boom")

        router = Router()
        router.register("broken", broken)
        server = HTTPServer(ServerConfig(port=0), routes=router)

        response = server.handle(make_request("GET", "/broken"))

        assert response.status == 500
        assert bytes(response.body) == b"Internal Server Error\n"
        assert "boom" in caplog.text

    def test_request_logger_is_server_logger(self):
        seen = []
        router = Router()
        router.register("who", lambda response, request: seen.append(request.logger))
        server = HTTPServer(ServerConfig(port=0), routes=router)

        request = make_request("GET", "/who", logger=server.logger)
        server.handle(request)

        assert seen == [server.logger]
        assert server.logger.name == "apiserver.server"

    def test_mapping_routes(self):
        server = HTTPServer(ServerConfig(port=0), routes={
            "/hello": lambda response, request: response.write("hi"),
        })
        assert bytes(server.handle(make_request("GET", "/hello")).body) == b"hi"

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(port=70000))

    def test_bind_freezes_router(self):
        router = Router()
        server = HTTPServer(ServerConfig(host="127.0.0.1", port=0), routes=router)
        server.bind()
        try:
            assert router.frozen
            assert server.server_address[1] != 0
            with pytest.raises(RouteTableFrozenError):
                router.register("late", lambda response, request: None)
        finally:
            server.listener.server_close()


class TestBuildRoutes:
    """Tests for the example API route tables."""

    def test_dispatch(self, weather):
        routes = build_routes("dispatch", weather=weather)

        assert isinstance(routes, Router)
        assert routes.tags() == ["weather", "logger"]

    def test_static(self, weather):
        routes = build_routes("static", weather=weather)

        assert isinstance(routes, PrefixRouter)
        assert sorted(routes.patterns) == ["/logger", "/weather/"]

    @pytest.mark.parametrize("mode", ["dispatch", "static"])
    def test_same_endpoints(self, mode, weather):
        server = HTTPServer(ServerConfig(port=0), routes=build_routes(mode, weather=weather))

        weather_body = bytes(server.handle(make_request("GET", "/weather/BADID")).body)
        logger_body = bytes(server.handle(form_request("/logger", "a=1")).body)

        assert weather_body.startswith(b'<error status="404">')
        assert logger_body == b'{"Status":"ok","Data":["a=1"]}'

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            build_routes("dynamic")


class TestMain:
    """Tests for the CLI entry point."""

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "apiserver" in capsys.readouterr().out

    def test_invalid_port(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--port", "70000"])
        assert exc.value.code == 1
        assert "Invalid port" in capsys.readouterr().err

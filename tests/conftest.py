"""
pytest configuration and fixtures.
"""

import threading
from typing import Callable, Generator, List, Tuple

import httpx
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from apiserver import HTTPServer, ServerConfig
from apiserver.handlers import WeatherHandler
from apiserver.http import HTTPRequest, HTTPResponse


STATION_XML = (
    '<?xml version="1.0" encoding="ISO-8859-1"?> '
    '<?xml-stylesheet href="latest_ob.xsl" type="text/xsl"?>\n'
    "<current_observation><station_id>KSFO</station_id>"
    "<temp_f>61.0</temp_f></current_observation>"
)


def make_request(method: str, target: str, **kwargs) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest.from_target(method, target, **kwargs)


def form_request(target: str, body: str, method: str = "POST") -> HTTPRequest:
    """Helper to create an urlencoded form submission."""
    return HTTPRequest.from_target(
        method,
        target,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=body.encode("utf-8"),
    )


@pytest.fixture
def response() -> HTTPResponse:
    """Empty response sink."""
    return HTTPResponse()


@pytest.fixture
def noaa_stub() -> Callable[[httpx.Request], httpx.Response]:
    """
    Stand-in for the NOAA service: KSFO exists, everything else is 404.

    Requests are recorded on the function's `calls` list.
    """
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path.endswith("/KSFO.xml"):
            return httpx.Response(200, text=STATION_XML)
        return httpx.Response(404, text="<html>Not Found</html>")

    handler.calls = calls
    return handler


@pytest.fixture
def weather(noaa_stub) -> Generator[WeatherHandler, None, None]:
    """WeatherHandler talking to the stub instead of the network."""
    client = httpx.Client(transport=httpx.MockTransport(noaa_stub))
    handler = WeatherHandler(client=client)
    yield handler
    handler.close()


@pytest.fixture
def live_server() -> Generator[Callable[..., HTTPServer], None, None]:
    """
    Factory that starts an HTTPServer on an ephemeral port in a
    background thread. All servers are shut down after the test.
    """
    started: List[Tuple[HTTPServer, threading.Thread]] = []

    def start(routes=None, **config_overrides) -> HTTPServer:
        options = dict(host="127.0.0.1", port=0, read_timeout=5, log_level="WARNING")
        options.update(config_overrides)
        server = HTTPServer(ServerConfig(**options), routes=routes)
        server.bind()

        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        started.append((server, thread))
        return server

    yield start

    for server, thread in started:
        server.listener.shutdown()
        thread.join(timeout=5.0)


def base_url(server: HTTPServer) -> str:
    host, port = server.server_address
    return f"http://{host}:{port}"


def client_for(server: HTTPServer) -> httpx.Client:
    """httpx client pointed at a live server, ignoring proxy settings."""
    return httpx.Client(base_url=base_url(server), timeout=5.0, trust_env=False)

"""
=============================================================================
WEATHER PROXY HANDLER
=============================================================================

Looks up current conditions for a NOAA station and returns them as XML.

    GET /weather/KSFO
        │
        ▼
    GET http://w1.weather.gov/xml/current_obs/KSFO.xml
        │
        ▼
    upstream XML, minus the stylesheet processing instruction
    (the stylesheet is relative to NOAA's site and breaks in browsers
    that load it from ours)

The local response is always 200 text/xml. Problems are reported inside
the body:

    ┌───────────────────────────┬──────────────────────────────────────────┐
    │ situation                 │ body                                     │
    ├───────────────────────────┼──────────────────────────────────────────┤
    │ no station id             │ <error>Please specify a NOAA station     │
    │                           │ id</error>                               │
    │ upstream replies non-200  │ <error status="404">Could not get        │
    │                           │ weather for NOAA station id X</error>    │
    │ upstream unreachable      │ <error status="502">Could not reach the  │
    │                           │ weather service for NOAA station id      │
    │                           │ X</error>                                │
    └───────────────────────────┴──────────────────────────────────────────┘

=============================================================================
"""

from typing import Optional, Union
from urllib.parse import quote

import httpx

from ..http import HTTPRequest, HTTPResponse, Handler, respond


WEATHER_URL_TEMPLATE = "http://w1.weather.gov/xml/current_obs/{station}.xml"
STYLESHEET_PI = '<?xml-stylesheet href="latest_ob.xsl" type="text/xsl"?>'
STYLESHEET_PI_BYTES = STYLESHEET_PI.encode("ascii")

MISSING_STATION_XML = "<error>Please specify a NOAA station id</error>"


def station_id(path: str) -> str:
    """The path component after the handler tag: /weather/<id>."""
    parts = path.split("/")
    return parts[2] if len(parts) > 2 else ""


class WeatherHandler:
    """
    Weather lookups through a reusable httpx client.

    Pass `client` to control the transport (tests use httpx.MockTransport);
    otherwise one client with `timeout` seconds per request is created
    here and shared by all request threads.
    """

    def __init__(
        self,
        url_template: str = WEATHER_URL_TEMPLATE,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.url_template = url_template
        self.client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def get_weather(self, response: HTTPResponse, request: HTTPRequest) -> Union[str, bytes]:
        """
        Body function for respond(): current observation XML.

        The upstream document is returned as BYTES. NOAA declares
        ISO-8859-1 in the XML prolog, so decoding it here would mangle
        characters like the degree sign.
        """
        station = station_id(request.path)
        if not station:
            return MISSING_STATION_XML

        url = self.url_template.format(station=quote(station, safe=""))
        try:
            reply = self.client.get(url)
        except httpx.HTTPError as e:
            request.logger.error(
                "could not reach weather service for NOAA station id %s: %s", station, e
            )
            return (
                '<error status="502">Could not reach the weather service '
                f"for NOAA station id {station}</error>"
            )

        if reply.status_code == 200:
            request.logger.info("found current weather for NOAA station id %s", station)
            return reply.content.replace(STYLESHEET_PI_BYTES, b"")

        request.logger.warning(
            "problem finding weather for NOAA station id %s (NOAA server reply: %d)",
            station, reply.status_code,
        )
        return (
            f'<error status="{reply.status_code}">'
            f"Could not get weather for NOAA station id {station}</error>"
        )

    @property
    def handler(self) -> Handler:
        """get_weather wrapped as a text/xml handler."""
        return respond("text/xml", "utf-8", self.get_weather)

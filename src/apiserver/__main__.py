"""
=============================================================================
API SERVER CLI ENTRY POINT
=============================================================================

Runs the example API (weather proxy + POST logger).

=============================================================================
USAGE
=============================================================================

    # All interfaces, port 9001, 30s read timeout
    python -m apiserver

    # Localhost only, custom port
    python -m apiserver --host 127.0.0.1 --port 3000

    # Static pattern map instead of tag dispatch
    python -m apiserver --mode static

Both modes serve the same endpoints:

    GET  /weather/<NOAA station id>   current conditions (text/xml)
    POST /logger                      form fields echoed as JSON

=============================================================================
"""

import argparse
import sys
from typing import Optional

from . import __version__
from .config import DEFAULT_SERVER_READ_TIMEOUT, LOG_LEVELS, ServerConfig
from .handlers import post_logger
from .handlers.weather import WeatherHandler
from .http import PrefixRouter, Router
from .http.router import RouteTable
from .server import HTTPServer


MODES = ("dispatch", "static")


def build_routes(mode: str, weather: Optional[WeatherHandler] = None) -> RouteTable:
    """
    Route table for the example API.

    Args:
        mode: "dispatch" (Router keyed by first path segment) or
              "static" (PrefixRouter keyed by path pattern).
        weather: Weather handler to use; a default one is created if None.
    """
    weather = weather or WeatherHandler()

    if mode == "dispatch":
        router = Router()
        router.register("weather", weather.handler)
        router.register("logger", post_logger.handler)
        return router

    if mode == "static":
        return PrefixRouter({
            "/weather/": weather.handler,
            "/logger": post_logger.handler,
        })

    raise ValueError(f"unknown mode {mode!r}, expected one of {', '.join(MODES)}")


def main(argv=None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="apiserver",
        description="Minimal HTTP API server with a weather proxy and a POST logger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m apiserver                         # All interfaces, port 9001
  python -m apiserver -H 127.0.0.1 -p 3000    # Localhost, custom port
  python -m apiserver --mode static           # Static pattern map
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="",
        help="Host to bind to (default: all interfaces)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=9001,
        help="Port to listen on (default: 9001)"
    )

    parser.add_argument(
        "--read-timeout", "-t",
        type=float,
        default=DEFAULT_SERVER_READ_TIMEOUT,
        help=f"Seconds to wait for request data (default: {DEFAULT_SERVER_READ_TIMEOUT})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--mode",
        choices=MODES,
        default="dispatch",
        help="Route table style (default: dispatch)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"apiserver {__version__}"
    )

    args = parser.parse_args(argv)

    try:
        config = ServerConfig(
            host=args.host,
            port=args.port,
            read_timeout=args.read_timeout,
            log_level=args.log_level,
        )
        server = HTTPServer(config, routes=build_routes(args.mode))
        server.run()
    except KeyboardInterrupt:
        pass
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
=============================================================================
EXAMPLE: WEATHER API (tag dispatch)
=============================================================================

Registers the weather proxy under the tag "weather" and serves it on
port 9001 of every interface:

    curl http://localhost:9001/weather/KSFO

    ┌─────────────────────────────────────────────────────────────────┐
    │  /weather/KSFO  → tag "weather" → respond(text/xml, get_weather) │
    │  /anything-else → warning logged, 404 page not found             │
    └─────────────────────────────────────────────────────────────────┘

Station ids: http://w1.weather.gov/xml/current_obs/

=============================================================================
"""

import sys
from pathlib import Path

# Run from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from apiserver import Router, new_local_server
from apiserver.handlers import WeatherHandler


def main():
    weather = WeatherHandler()

    router = Router()
    router.register("weather", weather.handler)

    new_local_server(9001, 30, router)


if __name__ == "__main__":
    main()

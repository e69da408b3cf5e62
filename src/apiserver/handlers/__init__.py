"""
Example handlers.

- weather:      /weather/<NOAA station id> → current conditions as XML
- post_logger:  POST form fields → JSON echo
"""

from .post_logger import Message, log_post_data
from .weather import WeatherHandler

__all__ = ["Message", "WeatherHandler", "log_post_data"]

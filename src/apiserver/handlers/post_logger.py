"""
POST logger: echoes submitted form fields back as JSON.

    POST /logger   name=bob&tag=a&tag=b

    {"Status":"ok","Data":["name=bob","tag=a,b"]}

Anything other than POST gets the default problem message.
"""

from dataclasses import dataclass, field
import json
from typing import List

from ..http import HTTPRequest, HTTPResponse, respond


DEFAULT_STATUS = "Sorry, there was a problem"


@dataclass
class Message:
    status: str = DEFAULT_STATUS
    data: List[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps({"Status": self.status, "Data": self.data}, separators=(",", ":"))


DEFAULT_MESSAGE_JSON = Message().to_json()


def log_post_data(response: HTTPResponse, request: HTTPRequest) -> str:
    """Body function for respond(): one "name=v1,v2" entry per form field."""
    message = Message()
    if request.method == "POST":
        fields = [f"{name}={','.join(values)}" for name, values in request.post_form.items()]
        message = Message(status="ok", data=fields)
        request.logger.info("logged POST data: %s", fields)

    try:
        return message.to_json()
    except (TypeError, ValueError) as e:
        request.logger.error("could not serialise POST data: %s", e)
        return DEFAULT_MESSAGE_JSON


handler = respond("application/json", "utf-8", log_post_data)

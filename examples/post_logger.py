"""
=============================================================================
EXAMPLE: POST LOGGER (static pattern map)
=============================================================================

Echoes submitted form fields as JSON:

    curl -d "name=bob&tag=a&tag=b" http://localhost:9001/logger
    {"Status":"ok","Data":["name=bob","tag=a,b"]}

    curl http://localhost:9001/logger
    {"Status":"Sorry, there was a problem","Data":[]}

=============================================================================
"""

import sys
from pathlib import Path

# Run from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from apiserver import new_local_server, respond
from apiserver.handlers import log_post_data


def main():
    new_local_server(9001, 30, {
        "/logger": respond("application/json", "utf-8", log_post_data),
    })


if __name__ == "__main__":
    main()

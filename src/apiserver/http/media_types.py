"""
=============================================================================
RESPONSE FORMATS
=============================================================================

Short names for the media types API handlers reply with, and the helper
that renders a full Content-Type header value.

    ┌────────────────────────────────────────────────────────────────────┐
    │  format   media type            Content-Type (charset=utf-8)       │
    ├────────────────────────────────────────────────────────────────────┤
    │  xml      text/xml              text/xml; charset=utf-8            │
    │  json     application/json      application/json; charset=utf-8    │
    │  text     text/plain            text/plain; charset=utf-8          │
    │  html     text/html             text/html; charset=utf-8           │
    └────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY text/xml AND NOT application/xml?
=============================================================================

Both are registered. text/xml is what the weather feed itself uses, so the
proxy keeps it; clients that sniff the type see what they would have seen
talking to NOAA directly.

=============================================================================
"""

RESPONSE_FORMATS = {
    "xml": "text/xml",
    "json": "application/json",
    "text": "text/plain",
    "html": "text/html",
}


def get_media_type(fmt: str) -> str:
    """
    Look up the media type for a short format name.

    Raises:
        ValueError: If the format is unknown.
    """
    try:
        return RESPONSE_FORMATS[fmt.lower()]
    except KeyError:
        known = ", ".join(sorted(RESPONSE_FORMATS))
        raise ValueError(f"Unknown response format {fmt!r} (known: {known})") from None


def content_type(media_type: str, charset: str) -> str:
    """Render a Content-Type header value: "<media>; charset=<charset>"."""
    return f"{media_type}; charset={charset}"

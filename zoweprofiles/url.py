"""Host URL parsing used when users type a connection address."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from .models import DEFAULT_PORT, UrlValidation

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")

# Ports a WHATWG URL parser elides because they match the scheme's default.
_SPECIAL_PORTS = {
    "ftp": 21,
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}


def validate_and_parse_url(new_url: str) -> UrlValidation:
    """Split ``new_url`` into protocol, host and port.

    Malformed input yields ``UrlValidation(valid=False)`` instead of raising. Any
    literal ``":443"`` in the input pins the port to 443, even when it appears in
    the path. A missing port, or one equal to the scheme default, reports as 0.
    """

    invalid = UrlValidation()
    if not isinstance(new_url, str) or any(ch.isspace() for ch in new_url.strip()):
        return invalid
    try:
        parts = urlsplit(new_url.strip())
        parsed_port = parts.port
    except ValueError:
        return invalid
    if not parts.scheme or not _SCHEME.match(parts.scheme) or not parts.hostname:
        return invalid

    scheme = parts.scheme.lower()
    if ":443" in new_url:
        port = DEFAULT_PORT
    elif parsed_port is None or parsed_port == _SPECIAL_PORTS.get(scheme):
        port = 0
    else:
        port = parsed_port
    return UrlValidation(valid=True, protocol=scheme, host=parts.hostname, port=port)


__all__ = ["validate_and_parse_url"]

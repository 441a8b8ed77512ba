"""
Client IP extraction.

Proxy headers are consulted in the configured order; the first header
holding a syntactically valid address wins. ``X-Forwarded-For`` may
carry a chain, of which only the left-most entry is the client.
"""

import ipaddress
from typing import Iterable, Optional

from django.http import HttpRequest


def _valid_ip(value: str) -> Optional[str]:
    value = value.strip()
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return None
    return value


def get_client_ip(request: HttpRequest, trusted_headers: Iterable[str]) -> Optional[str]:
    """
    Resolve the client IP for a request.

    Args:
        request: HTTP request
        trusted_headers: META keys to consult, in priority order

    Returns:
        Client IP, or None when nothing valid is available
    """
    for header in trusted_headers:
        raw = request.META.get(header)
        if not raw:
            continue
        ip = _valid_ip(raw.split(",")[0])
        if ip:
            return ip
    return _valid_ip(request.META.get("REMOTE_ADDR", ""))

"""Request fingerprinting for cassette lookups.

A fingerprint is a pure function of (method, URL, body):
- SHA-256 over the three fields joined by NUL, returned as lowercase hex
- Headers never take part (cookies, auth tokens and client versions churn)
- Only http(s) requests are fingerprinted; data:, blob:, about: etc. are left alone
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from .cassette import RequestDescriptor

# NUL cannot appear in an HTTP method or URL, so field boundaries never shift.
FIELD_SEPARATOR = "\x00"

INTERCEPTABLE_SCHEMES = frozenset({"http", "https"})


def is_interceptable(url: str) -> bool:
    """True when the URL points at the network (http or https)."""
    if not url:
        return False
    return urlsplit(url).scheme.lower() in INTERCEPTABLE_SCHEMES


def fingerprint(method: str, url: str, body: str | None = None) -> str:
    """Compute the lookup key for a request."""
    data = FIELD_SEPARATOR.join((method, url, body or ""))
    return hashlib.sha256(data.encode("utf-8", errors="surrogatepass")).hexdigest()


def fingerprint_request(request: RequestDescriptor) -> str:
    return fingerprint(request.method, request.url, request.post_data)

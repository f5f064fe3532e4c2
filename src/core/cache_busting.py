# src/core/cache_busting.py - v1
"""Cache-busting query parameter (``t=<epoch-millis>``) for avatar locations."""

from __future__ import annotations

import time
from urllib.parse import urlsplit, urlunsplit

TIMESTAMP_PARAM = "t"


def add_timestamp(url: str, now_ms: int | None = None) -> str:
    """Append ``t=<epoch-millis>`` to url.

    Any ``t`` parameter already present is dropped first, so the result
    carries exactly one. ``&`` is used when other parameters remain.
    """
    if not url:
        return url
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    parts = urlsplit(remove_timestamp(url))
    param = f"{TIMESTAMP_PARAM}={stamp}"
    query = f"{parts.query}&{param}" if parts.query else param
    return urlunsplit(parts._replace(query=query))


def remove_timestamp(url: str) -> str:
    """Drop every ``t`` query parameter, keeping the rest of the URL verbatim."""
    if not url:
        return url
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = parts.query.split("&")
    kept = [p for p in pairs if p.partition("=")[0] != TIMESTAMP_PARAM]
    if len(kept) == len(pairs):
        return url
    return urlunsplit(parts._replace(query="&".join(kept)))

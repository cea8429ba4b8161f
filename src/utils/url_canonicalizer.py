"""Deterministic URL canonicalization used as the exact-match dedup key.

Rules:
- Lower-case scheme and host, drop default ports (80/443).
- Strip tracking parameters (utm_*, fbclid, gclid, ...) and empty values.
- Sort the remaining query parameters, drop the fragment.

Distinct article paths and meaningful query parameters are preserved.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAM_PREFIXES: Tuple[str, ...] = ("utm_", "icid")

TRACKING_PARAMS: Tuple[str, ...] = (
    "fbclid",
    "gclid",
    "yclid",
    "mc_cid",
    "mc_eid",
    "mkt_tok",
    "igshid",
    "ref",
    "ns_campaign",
    "ns_mchannel",
    "ns_source",
    "ns_linkname",
    "ns_fee",
)

_DEFAULT_PORTS = {"http": "80", "https": "443"}


def _is_tracking(key: str) -> bool:
    lowered = key.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith(TRACKING_PARAM_PREFIXES)


@lru_cache(maxsize=4096)
def canonicalize_url(url: str) -> str:
    """Return the canonical form of ``url``; non-http(s) input is returned stripped."""
    url = (url or "").strip()
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        return url

    host = parts.hostname.lower()
    port = parts.port
    netloc = host if port is None or str(port) == _DEFAULT_PORTS[scheme] else f"{host}:{port}"

    query_pairs = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=False)
        if not _is_tracking(key)
    ]
    query_pairs.sort()
    path = parts.path or "/"
    return urlunsplit((scheme, netloc, path, urlencode(query_pairs), ""))


__all__ = ["canonicalize_url"]

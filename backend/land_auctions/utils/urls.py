"""URL normalization and classification helpers for discovery."""

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAMS = {
    "fbclid",
    "gclid",
    "msclkid",
    "yclid",
    "mc_cid",
    "mc_eid",
    "_ga",
    "_gl",
    "ref",
}

# Path fragments that usually mark an index/search page rather than one property.
LISTING_PATH_HINTS = (
    "auctions",
    "listings",
    "properties",
    "land-for-sale",
    "farm-auctions",
    "land-auctions",
    "current-auctions",
    "lots",
    "search",
    "filter",
)

_PAGE_SUFFIX = re.compile(r"/page-\d+/?$")
_IOWA_HINTS = ("-ia", "_ia_", "iowa")


def _is_tracking_param(name: str) -> bool:
    name = name.lower()
    return name.startswith("utm_") or name in TRACKING_PARAMS


def normalize_url(url: str) -> str:
    """
    Canonical form used to deduplicate candidate URLs.

    Lower-cases scheme and host, drops tracking query parameters and the
    fragment, and trims a trailing slash from the path.
    """
    url = (url or "").strip()
    parts = urlsplit(url)
    if not parts.netloc:
        return url

    query = urlencode(
        [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if not _is_tracking_param(k)]
    )
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))


def domain_of(url: str) -> str:
    """Host without a leading ``www.``."""
    host = urlsplit((url or "").strip()).netloc.lower()
    if ":" in host:
        host = host.split(":", 1)[0]
    return host[4:] if host.startswith("www.") else host


def looks_like_listing_page(url: str) -> bool:
    """Heuristic: does the URL path or query point at an index of listings?"""
    parts = urlsplit(url)
    path = parts.path.lower().rstrip("/")
    if not path or _PAGE_SUFFIX.search(path + "/"):
        return True
    last_segment = path.rsplit("/", 1)[-1]
    if last_segment in LISTING_PATH_HINTS:
        return True
    return "type=auction" in parts.query.lower() or "filter" in parts.query.lower()


def is_iowa_url(url: str) -> bool:
    lowered = url.lower()
    return any(hint in lowered for hint in _IOWA_HINTS)

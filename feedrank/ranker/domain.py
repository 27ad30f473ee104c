"""Source URL to domain normalization."""

import re
from urllib.parse import urlsplit

from feedrank.config.constants import UNKNOWN_DOMAIN


_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_HOST_PATTERN = re.compile(r"^[a-z0-9_.-]+$")
_WWW_PREFIX_PATTERN = re.compile(r"^(?:www\.)+")


def normalize_domain(url: str | None) -> str:
    """Extract a normalized host from a source URL.

    The host is lower-cased and any leading ``www.`` labels are removed. A
    bare host (no scheme) is accepted, so the function is idempotent.
    Anything without a usable host maps to ``"unknown"``.

    Args:
        url: Source URL, bare host, or None.

    Returns:
        Normalized domain.
    """
    if not url or not url.strip():
        return UNKNOWN_DOMAIN

    candidate = url.strip()
    if not _SCHEME_PATTERN.match(candidate) and not candidate.startswith("//"):
        candidate = "//" + candidate

    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        return UNKNOWN_DOMAIN

    if not host or not _HOST_PATTERN.match(host):
        return UNKNOWN_DOMAIN

    return _WWW_PREFIX_PATTERN.sub("", host) or UNKNOWN_DOMAIN

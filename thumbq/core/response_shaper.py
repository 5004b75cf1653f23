"""
Translation of upstream answers into the public thumbnail contract.
"""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

LONG_CACHE_SECONDS = 60 * 60 * 24 * 30
SHORT_CACHE_SECONDS = 60

PASSTHROUGH_HEADERS = frozenset({"content-length", "content-type", "last-modified", "date"})

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def shape_status(upstream_status: int) -> int:
    """Map an upstream status onto the statuses this service answers with."""
    if upstream_status == 200:
        return 200
    if upstream_status in (404, 410):
        # A 410 is served as 404: the provider may still fix the item's
        # `object` field, so the thumbnail isn't necessarily gone for good.
        return 404
    # Anything else is a bad gateway; we don't own upstream failure semantics.
    return 502


def prune_headers(headers: HeaderSource) -> Dict[str, str]:
    """Keep only the pass-through headers, with lowercase names."""
    items = headers.items() if hasattr(headers, "items") else headers
    return {
        name.lower(): value
        for name, value in items
        if name.lower() in PASSTHROUGH_HEADERS
    }


def cache_headers(seconds: int, now: Optional[datetime] = None) -> Dict[str, str]:
    now = now or datetime.now(timezone.utc)
    expires = now + timedelta(seconds=seconds)
    return {
        "Cache-Control": f"public, max-age={seconds}",
        "Expires": format_datetime(expires.astimezone(timezone.utc), usegmt=True),
    }

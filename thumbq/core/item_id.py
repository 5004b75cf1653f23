"""
Item identifier parsing and cache key derivation.
"""

import re

from .errors import InvalidIdentifier

PATH_PATTERN = re.compile(r"^/thumb/([a-f0-9]{32})$")
CACHE_KEY_EXTENSION = ".jpg"


def parse_item_id(path: str) -> str:
    """Return the item id from a `/thumb/<id>` path or raise InvalidIdentifier."""
    # fullmatch so a trailing newline can't slip past `$`
    match = PATH_PATTERN.fullmatch(path or "")
    if match is None:
        raise InvalidIdentifier(f"Bad item ID in path: {path!r}")
    return match.group(1)


def cache_key(item_id: str) -> str:
    """`abcd…` -> `a/b/c/d/abcd….jpg`"""
    prefix = "/".join(item_id[:4])
    return f"{prefix}/{item_id}{CACHE_KEY_EXTENSION}"

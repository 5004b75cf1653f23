"""
Elasticsearch lookup of an item's origin image URL.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

from .config import Settings
from .errors import (
    IndexMalformedResponse,
    IndexMalformedUrl,
    IndexMissingReference,
    IndexNotFound,
)

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://")


def is_probably_url(value: Any) -> bool:
    return isinstance(value, str) and _URL_RE.match(value) is not None


def _total_hits(hits: dict) -> Optional[int]:
    total = hits.get("total")
    # Elasticsearch 7+ reports {"value": n, "relation": "eq"}
    if isinstance(total, dict):
        total = total.get("value")
    if isinstance(total, bool) or not isinstance(total, int):
        return None
    return total


def image_url_from_search_result(payload: Any) -> str:
    """Pull the origin image URL out of a `_search` response body."""
    if not isinstance(payload, dict) or not isinstance(payload.get("hits"), dict):
        raise IndexMalformedResponse("Bad response from Elasticsearch.")
    hits = payload["hits"]
    total = _total_hits(hits)
    if total is None:
        raise IndexMalformedResponse("Bad response from Elasticsearch.")

    records = hits.get("hits")
    if records is None:
        records = []
    if not isinstance(records, list):
        raise IndexMalformedResponse("Bad response from Elasticsearch.")
    if total == 0 or not records:
        raise IndexNotFound("No record found.")

    first = records[0]
    if not isinstance(first, dict):
        raise IndexMalformedResponse("Bad record in Elasticsearch response.")
    source = first.get("_source", {})
    if not isinstance(source, dict):
        raise IndexMalformedResponse("Bad record in Elasticsearch response.")
    obj = source.get("object")
    if isinstance(obj, list):
        obj = obj[0] if obj else None
    if not isinstance(obj, str) or not obj:
        raise IndexMissingReference("Couldn't find image URL in record.")

    if not is_probably_url(obj):
        raise IndexMalformedUrl(f"URL was malformed: {obj[:80]}")
    return obj


class IndexLookup:
    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.ELASTIC_URL.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=settings.INDEX_TIMEOUT_SECONDS)

    async def find_origin_url(self, item_id: str) -> str:
        """Query the index for a single item and return its image URL."""
        params = {"q": f"id:{item_id}", "_source": "id,object"}
        try:
            response = await self._client.get(f"{self.base_url}/item/_search", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("[index] HTTP %s for %s", exc.response.status_code, item_id)
            raise IndexMalformedResponse(f"Index answered {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("[index] request failed for %s: %s", item_id, exc)
            raise IndexMalformedResponse(f"Index request failed: {exc}") from exc
        except ValueError as exc:
            raise IndexMalformedResponse("Index response is not JSON") from exc
        return image_url_from_search_result(payload)

    async def aclose(self) -> None:
        await self._client.aclose()

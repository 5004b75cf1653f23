"""
Thumbnail resolution pipeline.

    parse path -> check cache --hit--> presign -> proxy cached copy
                              `-miss-> index lookup -> proxy origin -> queue caching

Every request ends in a ResolvedImage; collaborator failures are translated
into a public status here and never escape as exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Dict, Optional

from ..core.cache_queue import CacheQueue
from ..core.cache_store import CacheStore
from ..core.config import Settings
from ..core.errors import (
    CacheInfrastructureError,
    FetchError,
    IndexLookupError,
    InvalidIdentifier,
)
from ..core.item_id import parse_item_id
from ..core.origin import OriginFetcher, OriginResponse
from ..core.response_shaper import (
    LONG_CACHE_SECONDS,
    SHORT_CACHE_SECONDS,
    cache_headers,
    prune_headers,
    shape_status,
)
from ..core.search_index import IndexLookup

logger = logging.getLogger(__name__)


class ResolverState(str, Enum):
    PARSING_PATH = "parsing_path"
    CHECKING_CACHE = "checking_cache"
    PROXYING_CACHED = "proxying_cached"
    LOOKING_UP_INDEX = "looking_up_index"
    PROXYING_ORIGIN = "proxying_origin"
    RESPONDING = "responding"
    RESPONDED = "responded"
    FAILED = "failed"


@dataclass
class ResolvedImage:
    """Response under construction, owned by the request that produced it."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    cache_seconds: Optional[int] = None
    state: ResolverState = ResolverState.RESPONDED
    origin: Optional[OriginResponse] = None

    @property
    def has_body(self) -> bool:
        return self.origin is not None

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield the upstream body, releasing the connection when done or aborted."""
        if self.origin is None:
            return
        try:
            async for chunk in self.origin.iter_body():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self.origin is not None:
            await self.origin.aclose()


class ThumbnailResolver:
    def __init__(
        self,
        cache_store: CacheStore,
        index: IndexLookup,
        fetcher: OriginFetcher,
        queue: CacheQueue,
    ):
        self.cache_store = cache_store
        self.index = index
        self.fetcher = fetcher
        self.queue = queue

    @classmethod
    def from_settings(cls, settings: Settings) -> "ThumbnailResolver":
        return cls(
            cache_store=CacheStore(settings),
            index=IndexLookup(settings),
            fetcher=OriginFetcher(settings),
            queue=CacheQueue(settings),
        )

    async def resolve(self, path: str) -> ResolvedImage:
        self._transition(path, ResolverState.PARSING_PATH)
        try:
            item_id = parse_item_id(path)
        except InvalidIdentifier as exc:
            logger.info("[thumb] %s", exc)
            # No cache headers on a malformed request
            return self._failed(exc.status_code)

        self._transition(item_id, ResolverState.CHECKING_CACHE)
        if await self._is_cached(item_id):
            resolved = await self._serve_cached(item_id)
            if resolved is not None:
                return resolved
        return await self._serve_origin(item_id)

    async def _is_cached(self, item_id: str) -> bool:
        try:
            hit = await self.cache_store.exists(item_id)
        except CacheInfrastructureError as exc:
            # Cache trouble must not take image serving down; treat as a miss.
            logger.warning("[thumb] cache check failed for %s, falling back: %s", item_id, exc)
            return False
        logger.info("[thumb] cache %s for %s", "hit" if hit else "miss", item_id)
        return hit

    async def _serve_cached(self, item_id: str) -> Optional[ResolvedImage]:
        self._transition(item_id, ResolverState.PROXYING_CACHED)
        try:
            url = self.cache_store.signed_url(item_id)
        except CacheInfrastructureError as exc:
            logger.warning("[thumb] could not presign %s, falling back: %s", item_id, exc)
            return None
        return await self._proxy(item_id, url, LONG_CACHE_SECONDS)

    async def _serve_origin(self, item_id: str) -> ResolvedImage:
        self._transition(item_id, ResolverState.LOOKING_UP_INDEX)
        try:
            url = await self.index.find_origin_url(item_id)
        except IndexLookupError as exc:
            logger.info("[thumb] index lookup for %s failed (%s): %s", item_id, type(exc).__name__, exc)
            return self._failed(exc.status_code, SHORT_CACHE_SECONDS)

        self._transition(item_id, ResolverState.PROXYING_ORIGIN)
        return await self._proxy(item_id, url, SHORT_CACHE_SECONDS, populate=True)

    async def _proxy(
        self,
        item_id: str,
        url: str,
        cache_seconds: int,
        populate: bool = False,
    ) -> ResolvedImage:
        try:
            upstream = await self.fetcher.fetch(url)
        except FetchError as exc:
            return self._failed(exc.status_code, SHORT_CACHE_SECONDS)

        self._transition(item_id, ResolverState.RESPONDING)
        status = shape_status(upstream.status_code)
        if status != 200:
            # Short window even on the cache tier: errors are never held for 30 days.
            logger.info("[thumb] upstream answered %s for %s, serving %s", upstream.status_code, item_id, status)
            await upstream.aclose()
            return ResolvedImage(
                status_code=status,
                headers=cache_headers(SHORT_CACHE_SECONDS),
                cache_seconds=SHORT_CACHE_SECONDS,
            )

        if populate:
            self.queue.submit(item_id, url)

        headers = prune_headers(upstream.headers)
        if upstream.is_encoded:
            # Body is decoded on the way through; the upstream length no longer applies.
            headers.pop("content-length", None)
        headers.update(cache_headers(cache_seconds))
        return ResolvedImage(
            status_code=200,
            headers=headers,
            cache_seconds=cache_seconds,
            origin=upstream,
        )

    @staticmethod
    def _failed(status_code: int, cache_seconds: Optional[int] = None) -> ResolvedImage:
        headers = cache_headers(cache_seconds) if cache_seconds else {}
        return ResolvedImage(
            status_code=status_code,
            headers=headers,
            cache_seconds=cache_seconds,
            state=ResolverState.FAILED,
        )

    @staticmethod
    def _transition(subject: str, state: ResolverState) -> None:
        logger.debug("[thumb] %s -> %s", subject, state.value)

    async def aclose(self) -> None:
        await self.queue.drain()
        await self.index.aclose()
        await self.fetcher.aclose()

"""
Proxy fetches against origin hosts (and presigned cache URLs).

The response head must arrive within the configured deadline. The body is
streamed through untouched; callers own the response and must close it.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx

from .config import Settings
from .errors import FetchConnectionError, FetchTimeout

logger = logging.getLogger(__name__)


@dataclass
class OriginResponse:
    """Upstream answer whose body has not been read yet."""
    status_code: int
    headers: httpx.Headers
    response: httpx.Response

    @property
    def is_encoded(self) -> bool:
        """True when the origin ignored `Accept-Encoding: identity`."""
        encoding = self.headers.get("content-encoding", "").strip().lower()
        return encoding not in ("", "identity")

    async def iter_body(self) -> AsyncIterator[bytes]:
        if self.is_encoded:
            # Content-Encoding is not passed through, so decode here.
            chunks = self.response.aiter_bytes()
        else:
            chunks = self.response.aiter_raw()
        async for chunk in chunks:
            yield chunk

    async def aclose(self) -> None:
        await self.response.aclose()


class OriginFetcher:
    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.timeout = float(settings.ORIGIN_TIMEOUT_SECONDS)
        self.user_agent = settings.USER_AGENT
        self._client = client or httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> OriginResponse:
        """GET `url`, raising FetchTimeout / FetchConnectionError on transport failure."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Encoding": "identity",
        }
        try:
            request = self._client.build_request("GET", url, headers=headers)
            # wait_for cancels the pending send on expiry, which releases the
            # connection instead of leaving it dangling in the pool.
            response = await asyncio.wait_for(
                self._client.send(request, stream=True, follow_redirects=True),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("[origin] Timeout after %.1fs: %s", self.timeout, url[:80])
            raise FetchTimeout(f"Response from server timed out: {url}") from exc
        except httpx.TimeoutException as exc:
            logger.warning("[origin] Transport timeout: %s", url[:80])
            raise FetchTimeout(f"Response from server timed out: {url}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("[origin] Connection error (%s) for %s", type(exc).__name__, url[:80])
            raise FetchConnectionError(f"Could not fetch {url}: {exc}") from exc

        return OriginResponse(
            status_code=response.status_code,
            headers=response.headers,
            response=response,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

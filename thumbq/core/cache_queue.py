"""
Fire-and-forget submission of cache population requests to SQS.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Set

import boto3

from .config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachePopulationRequest:
    id: str
    url: str

    def to_message(self) -> str:
        return json.dumps(asdict(self))


class CacheQueue:
    def __init__(self, settings: Settings, client=None):
        self.queue_url = settings.SQS_QUEUE_URL
        if client is None and self.queue_url:
            client = boto3.client("sqs", region_name=settings.REGION)
        self._client = client
        self._pending: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.queue_url and self._client is not None)

    def submit(self, item_id: str, url: str) -> Optional[asyncio.Task]:
        """Schedule the message and return immediately; failures are only logged."""
        if not self.enabled:
            logger.debug("[queue] no queue configured, not caching %s", item_id)
            return None
        message = CachePopulationRequest(id=item_id, url=url)

        async def _run() -> None:
            try:
                await asyncio.to_thread(
                    self._client.send_message,
                    QueueUrl=self.queue_url,
                    MessageBody=message.to_message(),
                )
                logger.debug("[queue] queued %s", item_id)
            except Exception as exc:
                logger.warning("[queue] submit failed for %s: %r", item_id, exc, exc_info=True)

        task = asyncio.create_task(_run())
        # Hold a reference until done so the task isn't garbage collected.
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for in-flight submissions (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

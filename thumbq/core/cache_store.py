"""
S3-backed thumbnail cache tier.

Only metadata is read here: existence is a HEAD request and the bytes are
fetched later by the origin fetcher through a presigned URL.
"""

import asyncio
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import CacheInfrastructureError
from .item_id import cache_key

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class CacheStore:
    def __init__(self, settings: Settings, client=None):
        self.bucket = settings.BUCKET
        # A presigned URL must outlive the origin fetch that consumes it.
        self.expires_in = max(
            int(settings.SIGNED_URL_EXPIRES_SECONDS),
            int(settings.ORIGIN_TIMEOUT_SECONDS) + 1,
        )
        self._client = client or boto3.client("s3", region_name=settings.REGION)

    async def exists(self, item_id: str) -> bool:
        """HEAD the cached object. False on a plain miss, raise on anything else."""
        key = cache_key(item_id)
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as exc:
            error_code = str(exc.response.get("Error", {}).get("Code", ""))
            if error_code in _MISSING_CODES:
                return False
            raise CacheInfrastructureError(f"S3 error {error_code or 'unknown'} for {key}") from exc
        except BotoCoreError as exc:
            raise CacheInfrastructureError(f"S3 unavailable for {key}: {exc}") from exc
        return True

    def signed_url(self, item_id: str, expires_in: Optional[int] = None) -> str:
        """Presigned GET URL for the cached thumbnail; signing is local, no I/O."""
        key = cache_key(item_id)
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in or self.expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise CacheInfrastructureError(f"Could not sign {key}: {exc}") from exc

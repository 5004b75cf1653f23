"""
Shared fixtures: settings, fake collaborators and httpx transports.
"""

import boto3
import httpx
import pytest

from thumbq.core.config import Settings
from thumbq.core.errors import CacheInfrastructureError
from thumbq.core.origin import OriginFetcher
from thumbq.services.thumbnail_resolver import ThumbnailResolver

ITEM_ID = "0123456789abcdef0123456789abcdef"
ORIGIN_URL = "https://example.org/a.jpg"
SIGNED_URL = "https://dpla-thumbnails.s3.amazonaws.com/0/1/2/3/signed.jpg"
IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture
def settings():
    return Settings(
        ELASTIC_URL="http://index.test/dpla_alias",
        BUCKET="dpla-thumbnails",
        SQS_QUEUE_URL="https://sqs.us-east-1.amazonaws.com/123/thumbp",
        ORIGIN_TIMEOUT_SECONDS=10,
    )


def aws_client(service: str):
    """Real boto3 client with dummy credentials, meant to be wrapped in a Stubber."""
    return boto3.client(
        service,
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class FakeCacheStore:
    def __init__(self, hit=False, error=None):
        self.hit = hit
        self.error = error
        self.checked = []

    async def exists(self, item_id):
        self.checked.append(item_id)
        if self.error:
            raise self.error
        return self.hit

    def signed_url(self, item_id):
        return SIGNED_URL


class FakeIndex:
    def __init__(self, url=ORIGIN_URL, error=None):
        self.url = url
        self.error = error
        self.calls = []

    async def find_origin_url(self, item_id):
        self.calls.append(item_id)
        if self.error:
            raise self.error
        return self.url

    async def aclose(self):
        pass


class FakeQueue:
    def __init__(self):
        self.submitted = []

    def submit(self, item_id, url):
        self.submitted.append((item_id, url))

    async def drain(self):
        pass


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests = []

        def _record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def image_handler(status=200, content=IMAGE_BYTES, headers=None):
    default_headers = {
        "Content-Type": "image/jpeg",
        "Last-Modified": "Tue, 01 Jun 2021 10:00:00 GMT",
        "ETag": '"abc"',
        "Cache-Control": "private, no-store",
        "Set-Cookie": "session=1",
        "Vary": "Accept",
    }
    if headers is not None:
        default_headers = headers

    def handler(request):
        # Streamed like a real transport so aiter_raw() sees unread bytes
        return httpx.Response(status, stream=httpx.ByteStream(content), headers=default_headers)

    return handler


def build_resolver(settings, cache=None, index=None, queue=None, transport=None):
    transport = transport or RecordingTransport(image_handler())
    fetcher = OriginFetcher(settings, client=httpx.AsyncClient(transport=transport))
    return ThumbnailResolver(
        cache_store=cache or FakeCacheStore(),
        index=index or FakeIndex(),
        fetcher=fetcher,
        queue=queue or FakeQueue(),
    )


def cache_error():
    return CacheInfrastructureError("S3 error AccessDenied")

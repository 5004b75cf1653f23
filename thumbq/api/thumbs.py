"""
Thumbnail endpoint.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from ..services.thumbnail_resolver import ThumbnailResolver

router = APIRouter(tags=["thumbnails"])


def get_resolver(request: Request) -> ThumbnailResolver:
    return request.app.state.resolver


@router.get("/thumb/{item_path:path}")
async def thumbnail(
    item_path: str,
    request: Request,
    resolver: ThumbnailResolver = Depends(get_resolver),
):
    """Serve a thumbnail from the cache bucket, or proxy it from the item's origin."""
    resolved = await resolver.resolve(request.url.path)
    if not resolved.has_body:
        return Response(status_code=resolved.status_code, headers=resolved.headers)
    return StreamingResponse(
        resolved.stream(),
        status_code=resolved.status_code,
        headers=resolved.headers,
        # Safety net when the client goes away before the body is consumed.
        background=BackgroundTask(resolved.aclose),
    )

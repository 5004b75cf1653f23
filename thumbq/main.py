import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.routes_health import router as health_router
from .api.thumbs import router as thumbs_router
from .core.config import Settings, settings
from .services.thumbnail_resolver import ThumbnailResolver

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Collaborators are built once; requests only read them.
        app.state.resolver = ThumbnailResolver.from_settings(app_settings)
        logger.info("[thumbq] serving bucket %s, index %s", app_settings.BUCKET, app_settings.ELASTIC_URL)
        try:
            yield
        finally:
            await app.state.resolver.aclose()

    app = FastAPI(title="thumbq", description="Thumbnail cache and origin proxy", lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(thumbs_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)

"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stickerx.api.routes import router
from stickerx.config import Settings, get_settings
from stickerx.overlay.image_cache import FileAssetSource, ImageCache
from stickerx.overlay.render_pool import RenderPool
from stickerx.overlay.renderer import OverlayRenderer

logger = logging.getLogger(__name__)


def build_renderer(settings: Settings) -> OverlayRenderer:
    """Create a renderer backed by a file asset cache sized from settings."""
    cache = ImageCache(FileAssetSource(settings.assets_dir), capacity=settings.image_cache_capacity)
    return OverlayRenderer(
        cache,
        marker_radius=settings.debug_marker_radius,
        stroke_width=settings.debug_stroke_width,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting StickerX (assets=%s, cache_capacity=%s, max_concurrent=%s, debug=%s)",
        settings.assets_dir,
        settings.image_cache_capacity,
        settings.max_concurrent,
        settings.debug_mode,
    )

    render_pool = RenderPool(settings)
    renderer = build_renderer(settings)
    app.state.render_pool = render_pool
    app.state.renderer = renderer

    logger.info("StickerX ready")
    yield

    logger.info("Shutting down StickerX")
    render_pool.shutdown()
    renderer.clear_cache()
    logger.info("StickerX shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="StickerX",
        description="Face-anchored sticker overlay rendering",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application on STICKERX_HOST:STICKERX_PORT."""
    settings = get_settings()
    uvicorn.run("stickerx.main:app", host=settings.host, port=settings.port)

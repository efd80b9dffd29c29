"""Request dependencies: app-state accessors and API key authentication."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stickerx.config import Settings
from stickerx.overlay.render_pool import RenderPool
from stickerx.overlay.renderer import OverlayRenderer

_bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_render_pool(request: Request) -> RenderPool:
    pool: RenderPool = request.app.state.render_pool
    return pool


def get_renderer(request: Request) -> OverlayRenderer:
    renderer: OverlayRenderer = request.app.state.renderer
    return renderer


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
RenderPoolDep = Annotated[RenderPool, Depends(get_render_pool)]
RendererDep = Annotated[OverlayRenderer, Depends(get_renderer)]


async def verify_api_key(
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> None:
    """Require 'Authorization: Bearer <key>' when STICKERX_API_KEY is set."""
    if settings.api_key is None:
        return

    supplied = credentials.credentials.encode() if credentials is not None else b""
    if not secrets.compare_digest(supplied, settings.api_key.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

"""API route definitions."""

from __future__ import annotations

import logging
from typing import Annotated

import cv2
import numpy as np
from fastapi import APIRouter, Depends, Form, HTTPException, Response, UploadFile, status
from numpy.typing import NDArray
from pydantic import ValidationError

from stickerx.api.dependencies import RendererDep, RenderPoolDep, SettingsDep, verify_api_key
from stickerx.api.schemas import (
    ErrorResponse,
    HealthResponse,
    RenderRequest,
    StickerInfo,
    StickersResponse,
)
from stickerx.overlay.geometry import RenderFrame
from stickerx.overlay.renderer import OverlayRenderer
from stickerx.overlay.stickers import STICKER_CATALOG, Sticker, get_sticker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])


def _decode_frame(data: bytes) -> NDArray[np.uint8] | None:
    if not data:
        return None
    return cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)


def _render_png(
    renderer: OverlayRenderer,
    surface: NDArray[np.uint8],
    frame: RenderFrame,
    sticker: Sticker | None,
    debug: bool,
) -> bytes:
    renderer.render(surface, frame, sticker, debug)
    ok, encoded = cv2.imencode(".png", surface)
    if not ok:
        raise RuntimeError("PNG encoding failed")
    return encoded.tobytes()


@router.post(
    "/render",
    response_class=Response,
    responses={
        status.HTTP_200_OK: {"content": {"image/png": {}}},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Draw a sticker onto the detected faces of a frame",
)
async def render(
    file: UploadFile,
    payload: Annotated[str, Form(description="JSON-encoded RenderRequest")],
    settings: SettingsDep,
    pool: RenderPoolDep,
    renderer: RendererDep,
) -> Response:
    """Composite the selected sticker onto each face and return the frame as PNG."""
    try:
        request = RenderRequest.model_validate_json(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid payload: {exc}") from None

    sticker: Sticker | None = None
    if request.sticker_id is not None:
        try:
            sticker = get_sticker(request.sticker_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0])) from None

    data = await file.read()
    if len(data) > settings.max_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image exceeds {settings.max_file_size} bytes",
        )

    try:
        surface = await pool.run(_decode_frame, data)
        if surface is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not decode image")

        height, width = surface.shape[:2]
        if width * height > settings.max_image_pixels:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Image exceeds {settings.max_image_pixels} pixels",
            )

        debug = settings.debug_mode if request.debug is None else request.debug
        mirror = settings.mirror_front_camera if request.mirror is None else request.mirror
        frame = request.to_frame(width, height, mirror)
        png = await pool.run(_render_png, renderer, surface, frame, sticker, debug)
    except TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Render capacity exhausted, retry later",
        ) from None

    logger.debug("Rendered %d face(s) at %dx%d", len(frame.faces), width, height)
    return Response(content=png, media_type="image/png")


@router.get(
    "/stickers",
    response_model=StickersResponse,
    summary="List available stickers",
)
async def list_stickers() -> StickersResponse:
    """Return the built-in sticker catalog."""
    return StickersResponse(
        stickers=[
            StickerInfo(
                id=sticker.id,
                type=sticker.type,
                name=sticker.name,
                image_ref=sticker.image_ref,
                offset_y_ratio=sticker.offset_y_ratio,
                scale_ratio=sticker.scale_ratio,
            )
            for sticker in STICKER_CATALOG.values()
        ]
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(pool: RenderPoolDep, renderer: RendererDep) -> HealthResponse:
    """Return service health status."""
    return HealthResponse(
        status="ok",
        cached_images=len(renderer.cache),
        concurrent_renders=pool.active_count,
        queue_depth=pool.queue_depth,
    )

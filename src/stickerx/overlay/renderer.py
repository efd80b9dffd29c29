"""Per-frame overlay rendering.

For every face in a frame snapshot the renderer maps the detection onto the
surface, optionally draws debug geometry, then places and alpha-blends the
selected sticker. Faces are handled independently; a failure while drawing
one face is logged and does not affect the others.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import cv2
import numpy as np

from stickerx.overlay.placement import placement_rect
from stickerx.overlay.transform import transform

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from stickerx.overlay.geometry import BoundingBox, FaceDetectionResult, Keypoint, Rect, RenderFrame
    from stickerx.overlay.image_cache import ImageCache
    from stickerx.overlay.stickers import Sticker

logger = logging.getLogger(__name__)

# BGR
DEBUG_BOX_COLOR: tuple[int, int, int] = (0, 255, 0)
DEBUG_KEYPOINT_COLOR: tuple[int, int, int] = (0, 0, 255)


class OverlayRenderer:
    """Draws face-anchored stickers onto BGR or BGRA uint8 surfaces."""

    def __init__(self, cache: ImageCache, marker_radius: int = 8, stroke_width: int = 3) -> None:
        self._cache = cache
        self._marker_radius = marker_radius
        self._stroke_width = stroke_width

    @property
    def cache(self) -> ImageCache:
        return self._cache

    def render(
        self,
        surface: NDArray[np.uint8],
        frame: RenderFrame,
        selected_sticker: Sticker | None,
        debug_mode: bool,
    ) -> None:
        """Draw one frame's overlays onto ``surface`` in place.

        Args:
            surface: HxWx3 (BGR) or HxWx4 (BGRA) uint8 array.
            frame: Detections for the analyzed frame and its dimensions.
            selected_sticker: Sticker to draw on every face, or None.
            debug_mode: Also draw face boxes and keypoint markers.
        """
        if not frame.faces:
            return
        if surface.ndim != 3 or surface.shape[2] not in (3, 4) or surface.dtype != np.uint8:
            logger.warning("Unsupported surface %s %s; skipping frame", surface.shape, surface.dtype)
            return
        if frame.frame_width <= 0 or frame.frame_height <= 0:
            logger.debug("Skipping frame with size %sx%s", frame.frame_width, frame.frame_height)
            return

        view_h, view_w = surface.shape[:2]
        sticker = selected_sticker if selected_sticker is not None and selected_sticker.is_overlay else None

        for index, face in enumerate(frame.faces):
            try:
                self._render_face(surface, face, frame, view_w, view_h, sticker, debug_mode)
            except Exception:
                logger.exception("Failed to render overlay for face %d", index)

    def clear_cache(self) -> None:
        """Release all cached sticker images."""
        self._cache.clear()

    # -- Internal -----------------------------------------------------------

    def _render_face(
        self,
        surface: NDArray[np.uint8],
        face: FaceDetectionResult,
        frame: RenderFrame,
        view_w: int,
        view_h: int,
        sticker: Sticker | None,
        debug_mode: bool,
    ) -> None:
        mapped = transform(
            face.bounding_box,
            face.keypoints,
            frame.frame_width,
            frame.frame_height,
            view_w,
            view_h,
            frame.mirror,
        )
        if mapped is None:
            return
        box, keypoints = mapped

        if debug_mode:
            self._draw_debug(surface, box, keypoints)

        if sticker is None:
            return
        image = self._cache.get(sticker.image_ref)
        if image is None:
            return

        img_h, img_w = image.shape[:2]
        rect = placement_rect(sticker, box, keypoints, img_w / img_h)
        if rect is None:
            return
        composite(surface, image, rect)

    def _draw_debug(self, surface: NDArray[np.uint8], box: BoundingBox, keypoints: Sequence[Keypoint]) -> None:
        channels = surface.shape[2]
        cv2.rectangle(
            surface,
            (round(box.left), round(box.top)),
            (round(box.right), round(box.bottom)),
            _surface_color(DEBUG_BOX_COLOR, channels),
            thickness=self._stroke_width,
            lineType=cv2.LINE_AA,
        )
        marker_color = _surface_color(DEBUG_KEYPOINT_COLOR, channels)
        for kp in keypoints:
            cv2.circle(
                surface,
                (round(kp.x), round(kp.y)),
                self._marker_radius,
                marker_color,
                thickness=cv2.FILLED,
                lineType=cv2.LINE_AA,
            )


def _surface_color(bgr: tuple[int, int, int], channels: int) -> tuple[int, ...]:
    if channels == 4:
        return (*bgr, 255)
    return bgr


def composite(surface: NDArray[np.uint8], image: NDArray[np.uint8], rect: Rect) -> None:
    """Alpha-blend a BGRA ``image`` scaled into ``rect`` onto ``surface``.

    The image is resampled bilinearly straight into the visible part of the
    rectangle, so rectangles partly or wholly outside the surface are clipped
    without resizing the off-screen area. Sampling clamps to the image edge;
    coverage is decided by pixel centers, so an opaque image fills its
    rectangle at full opacity.
    """
    if rect.width <= 0 or rect.height <= 0:
        return
    surf_h, surf_w = surface.shape[:2]
    x0 = max(0, math.floor(rect.left))
    y0 = max(0, math.floor(rect.top))
    x1 = min(surf_w, math.ceil(rect.right))
    y1 = min(surf_h, math.ceil(rect.bottom))
    if x1 <= x0 or y1 <= y0:
        return

    img_h, img_w = image.shape[:2]
    sx = rect.width / img_w
    sy = rect.height / img_h
    # Pixel-center aligned mapping from image space into the clipped region.
    matrix = np.array(
        [
            [sx, 0.0, rect.left - x0 + 0.5 * sx - 0.5],
            [0.0, sy, rect.top - y0 + 0.5 * sy - 0.5],
        ],
        dtype=np.float64,
    )
    warped = cv2.warpAffine(
        image,
        matrix,
        (x1 - x0, y1 - y0),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_REPLICATE,
    )

    centers_x = np.arange(x0, x1) + 0.5
    centers_y = np.arange(y0, y1) + 0.5
    inside_x = (centers_x >= rect.left) & (centers_x < rect.right)
    inside_y = (centers_y >= rect.top) & (centers_y < rect.bottom)
    covered = inside_y[:, None] & inside_x[None, :]

    region = surface[y0:y1, x0:x1]
    alpha = warped[:, :, 3:4].astype(np.float32) / 255.0
    alpha[~covered] = 0.0
    blended = warped[:, :, :3].astype(np.float32) * alpha + region[:, :, :3].astype(np.float32) * (1.0 - alpha)
    region[:, :, :3] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    if surface.shape[2] == 4:
        dst_alpha = region[:, :, 3:4].astype(np.float32) / 255.0
        out_alpha = alpha + dst_alpha * (1.0 - alpha)
        region[:, :, 3:4] = np.clip(np.rint(out_alpha * 255.0), 0, 255).astype(np.uint8)

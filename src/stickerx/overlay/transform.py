"""Detector-space to display-space coordinate mapping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stickerx.overlay.geometry import BoundingBox, Keypoint

if TYPE_CHECKING:
    from collections.abc import Sequence


def transform(
    box: BoundingBox,
    keypoints: Sequence[Keypoint],
    frame_width: float,
    frame_height: float,
    view_width: float,
    view_height: float,
    mirror: bool,
) -> tuple[BoundingBox, list[Keypoint]] | None:
    """Scale a face from the analyzed frame onto the display surface.

    Each axis is scaled independently. With ``mirror`` set, x is reflected
    across the view width, so the box's left and right edges trade places.

    Returns None when the frame size is not positive.
    """
    if frame_width <= 0 or frame_height <= 0:
        return None

    scale_x = view_width / frame_width
    scale_y = view_height / frame_height
    return (
        scale_box(box, scale_x, scale_y, view_width, mirror),
        scale_keypoints(keypoints, scale_x, scale_y, view_width, mirror),
    )


def scale_box(box: BoundingBox, scale_x: float, scale_y: float, view_width: float, mirror: bool) -> BoundingBox:
    if mirror:
        return BoundingBox(
            left=view_width - box.right * scale_x,
            top=box.top * scale_y,
            right=view_width - box.left * scale_x,
            bottom=box.bottom * scale_y,
        )
    return BoundingBox(
        left=box.left * scale_x,
        top=box.top * scale_y,
        right=box.right * scale_x,
        bottom=box.bottom * scale_y,
    )


def scale_keypoints(
    keypoints: Sequence[Keypoint], scale_x: float, scale_y: float, view_width: float, mirror: bool
) -> list[Keypoint]:
    if mirror:
        return [Keypoint(kp.type, view_width - kp.x * scale_x, kp.y * scale_y) for kp in keypoints]
    return [Keypoint(kp.type, kp.x * scale_x, kp.y * scale_y) for kp in keypoints]

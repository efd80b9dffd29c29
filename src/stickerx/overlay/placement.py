"""Anchor placement: where, and how large, each sticker is drawn on a face.

Every sticker type maps to a ``PlacementStrategy``: a few formula constants
plus a pure function that applies them. Strategies compute the width
first and derive the height from the sticker image's aspect ratio, so the
image is never stretched.

Two-point anchors (eyes, nose/mouth) are used only when both keypoints are
present. Otherwise the strategy falls back to a position derived from the
face box alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from stickerx.overlay.geometry import KeypointType, Rect, find_keypoint
from stickerx.overlay.stickers import StickerType

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from stickerx.overlay.geometry import BoundingBox, Keypoint
    from stickerx.overlay.stickers import Sticker

GLASSES_EYE_DISTANCE_FACTOR: float = 2.2
HEADWEAR_GAP_RATIO: float = 0.1
MASK_RAISE_RATIO: float = 0.1


@dataclass(frozen=True)
class PlacementStrategy:
    """Formula constants for one sticker category and the function applying them."""

    place: Callable[[PlacementStrategy, Sticker, BoundingBox, Sequence[Keypoint], float], Rect | None]
    width_factor: float = 1.0
    anchor_keypoints: tuple[KeypointType, ...] = ()
    fallback_y_ratio: float = 0.5


# ---------------------------------------------------------------------------
# Strategy functions
# ---------------------------------------------------------------------------


def _anchor_point(keypoints: Sequence[Keypoint], required: tuple[KeypointType, ...]) -> tuple[float, float] | None:
    """Centroid of the required keypoints, or None unless every one is present."""
    if not required:
        return None
    points = [find_keypoint(keypoints, kp_type) for kp_type in required]
    if any(p is None for p in points):
        return None
    xs = [p.x for p in points if p is not None]
    ys = [p.y for p in points if p is not None]
    return sum(xs) / len(xs), sum(ys) / len(ys)


def _sized_rect(center_x: float, center_y: float, width: float, image_aspect: float) -> Rect | None:
    if width <= 0:
        return None
    return Rect.centered(center_x, center_y, width, width / image_aspect)


def _place_on_landmarks(
    strategy: PlacementStrategy,
    sticker: Sticker,
    box: BoundingBox,
    keypoints: Sequence[Keypoint],
    image_aspect: float,
) -> Rect | None:
    anchor = _anchor_point(keypoints, strategy.anchor_keypoints)
    if anchor is None:
        anchor = (box.center_x, box.top + box.height * strategy.fallback_y_ratio)
    width = box.width * strategy.width_factor * sticker.scale_ratio
    return _sized_rect(anchor[0], anchor[1], width, image_aspect)


def _place_glasses(
    strategy: PlacementStrategy,
    sticker: Sticker,
    box: BoundingBox,
    keypoints: Sequence[Keypoint],
    image_aspect: float,
) -> Rect | None:
    left_eye = find_keypoint(keypoints, KeypointType.LEFT_EYE)
    right_eye = find_keypoint(keypoints, KeypointType.RIGHT_EYE)

    if left_eye is not None and right_eye is not None:
        eye_distance = abs(right_eye.x - left_eye.x)
        width = eye_distance * GLASSES_EYE_DISTANCE_FACTOR * sticker.scale_ratio
        return _sized_rect(
            (left_eye.x + right_eye.x) / 2,
            (left_eye.y + right_eye.y) / 2,
            width,
            image_aspect,
        )

    width = box.width * strategy.width_factor * sticker.scale_ratio
    return _sized_rect(box.center_x, box.top + box.height * strategy.fallback_y_ratio, width, image_aspect)


def _place_above_head(
    strategy: PlacementStrategy,
    sticker: Sticker,
    box: BoundingBox,
    keypoints: Sequence[Keypoint],
    image_aspect: float,
) -> Rect | None:
    width = box.width * strategy.width_factor * sticker.scale_ratio
    if width <= 0:
        return None
    height = width / image_aspect
    bottom = box.top - box.height * HEADWEAR_GAP_RATIO * sticker.offset_y_ratio
    half_w = width / 2
    return Rect(box.center_x - half_w, bottom - height, box.center_x + half_w, bottom)


def _place_mask(
    strategy: PlacementStrategy,
    sticker: Sticker,
    box: BoundingBox,
    keypoints: Sequence[Keypoint],
    image_aspect: float,
) -> Rect | None:
    width = box.width * strategy.width_factor * sticker.scale_ratio
    return _sized_rect(box.center_x, box.center_y - box.height * MASK_RAISE_RATIO, width, image_aspect)


# ---------------------------------------------------------------------------
# Strategy table
# ---------------------------------------------------------------------------

_HEADWEAR = PlacementStrategy(place=_place_above_head, width_factor=1.3)

PLACEMENT_STRATEGIES: dict[StickerType, PlacementStrategy] = {
    StickerType.GLASSES: PlacementStrategy(
        place=_place_glasses,
        width_factor=1.0,
        anchor_keypoints=(KeypointType.LEFT_EYE, KeypointType.RIGHT_EYE),
        fallback_y_ratio=0.35,
    ),
    StickerType.HAT: _HEADWEAR,
    StickerType.CAT_EARS: _HEADWEAR,
    StickerType.CROWN: _HEADWEAR,
    StickerType.MUSTACHE: PlacementStrategy(
        place=_place_on_landmarks,
        width_factor=0.6,
        anchor_keypoints=(KeypointType.NOSE_TIP, KeypointType.MOUTH_CENTER),
        fallback_y_ratio=0.7,
    ),
    StickerType.DOG_NOSE: PlacementStrategy(
        place=_place_on_landmarks,
        width_factor=0.4,
        anchor_keypoints=(KeypointType.NOSE_TIP,),
        fallback_y_ratio=0.55,
    ),
    StickerType.MASK: PlacementStrategy(place=_place_mask, width_factor=1.0),
}


def placement_rect(
    sticker: Sticker,
    box: BoundingBox,
    keypoints: Sequence[Keypoint],
    image_aspect: float,
) -> Rect | None:
    """Compute the display-space rectangle for ``sticker`` on one face.

    Args:
        sticker: The selected sticker.
        box: Face box, already transformed to display space.
        keypoints: Face keypoints, already transformed to display space.
        image_aspect: Sticker image width divided by height.

    Returns:
        The destination rectangle, or None when nothing should be drawn
        (no-overlay sticker, zero-area box, unsupported type or unusable
        image aspect).
    """
    if not sticker.is_overlay or box.is_degenerate or image_aspect <= 0:
        return None

    strategy = PLACEMENT_STRATEGIES.get(sticker.type)
    if strategy is None:
        return None
    return strategy.place(strategy, sticker, box, keypoints, image_aspect)

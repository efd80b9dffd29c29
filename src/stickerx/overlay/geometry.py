"""Geometry value types shared by the overlay pipeline.

Coordinates are floats in pixel space. Which space (detector frame or
display surface) depends on where in the pipeline a value lives; the types
themselves do not record it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box. Zero-area boxes are valid but never anchor a sticker."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2

    @property
    def is_degenerate(self) -> bool:
        return self.width == 0 or self.height == 0


class KeypointType(StrEnum):
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    NOSE_TIP = "nose_tip"
    MOUTH_CENTER = "mouth_center"
    LEFT_EAR_TRAGION = "left_ear_tragion"
    RIGHT_EAR_TRAGION = "right_ear_tragion"

    @classmethod
    def from_index(cls, index: int) -> KeypointType | None:
        """Map the detector's positional keypoint index (0-5) to a type."""
        if 0 <= index < len(_KEYPOINT_ORDER):
            return _KEYPOINT_ORDER[index]
        return None


_KEYPOINT_ORDER: tuple[KeypointType, ...] = tuple(KeypointType)


@dataclass(frozen=True)
class Keypoint:
    """A single labeled landmark."""

    type: KeypointType
    x: float
    y: float


def find_keypoint(keypoints: Iterable[Keypoint], kp_type: KeypointType) -> Keypoint | None:
    """Return the keypoint of the given type, or None when the detector omitted it."""
    for kp in keypoints:
        if kp.type == kp_type:
            return kp
    return None


@dataclass(frozen=True)
class FaceDetectionResult:
    """One face from one analyzed frame, in detector pixel space."""

    bounding_box: BoundingBox
    keypoints: tuple[Keypoint, ...] = ()
    confidence: float = 0.0

    @classmethod
    def from_normalized(
        cls,
        bounding_box: BoundingBox,
        normalized_keypoints: Sequence[tuple[float, float]],
        frame_width: int,
        frame_height: int,
        confidence: float = 0.0,
    ) -> FaceDetectionResult:
        """Build a detection from a pixel box and positional, normalized keypoints.

        Landmark detectors usually report keypoints as fractions of the frame
        in a fixed order. Indices beyond the known keypoint types are dropped.
        """
        keypoints: list[Keypoint] = []
        for index, (nx, ny) in enumerate(normalized_keypoints):
            kp_type = KeypointType.from_index(index)
            if kp_type is None:
                continue
            keypoints.append(Keypoint(kp_type, nx * frame_width, ny * frame_height))
        return cls(bounding_box=bounding_box, keypoints=tuple(keypoints), confidence=confidence)


@dataclass(frozen=True)
class Rect:
    """Destination rectangle in display space."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @classmethod
    def centered(cls, center_x: float, center_y: float, width: float, height: float) -> Rect:
        half_w = width / 2
        half_h = height / 2
        return cls(center_x - half_w, center_y - half_h, center_x + half_w, center_y + half_h)


@dataclass(frozen=True)
class RenderFrame:
    """Snapshot of one analyzed frame, handed to the renderer as a whole."""

    faces: tuple[FaceDetectionResult, ...] = field(default_factory=tuple)
    frame_width: int = 1
    frame_height: int = 1
    mirror: bool = False

"""Pydantic request/response schemas for the StickerX API."""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from stickerx.overlay.geometry import (
    BoundingBox,
    FaceDetectionResult,
    Keypoint,
    KeypointType,
    RenderFrame,
)
from stickerx.overlay.stickers import StickerType


class BoundingBoxModel(BaseModel):
    """Face bounding box in pixels of the analyzed frame."""

    left: float
    top: float
    right: float
    bottom: float

    @model_validator(mode="after")
    def _check_order(self) -> Self:
        if self.left > self.right or self.top > self.bottom:
            raise ValueError("bounding box requires left <= right and top <= bottom")
        return self


class KeypointModel(BaseModel):
    """A labeled facial landmark in pixels of the analyzed frame."""

    type: KeypointType
    x: float
    y: float


class FaceModel(BaseModel):
    """One detected face."""

    bounding_box: BoundingBoxModel
    keypoints: list[KeypointModel] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("keypoints")
    @classmethod
    def _unique_types(cls, keypoints: list[KeypointModel]) -> list[KeypointModel]:
        types = [kp.type for kp in keypoints]
        if len(types) != len(set(types)):
            raise ValueError("keypoint types must be unique per face")
        return keypoints

    def to_detection(self) -> FaceDetectionResult:
        box = self.bounding_box
        return FaceDetectionResult(
            bounding_box=BoundingBox(box.left, box.top, box.right, box.bottom),
            keypoints=tuple(Keypoint(kp.type, kp.x, kp.y) for kp in self.keypoints),
            confidence=self.confidence,
        )


class RenderRequest(BaseModel):
    """Render parameters sent alongside the frame image."""

    faces: list[FaceModel] = Field(default_factory=list)
    frame_width: int | None = Field(default=None, gt=0, description="Detector frame width; defaults to image width")
    frame_height: int | None = Field(
        default=None, gt=0, description="Detector frame height; defaults to image height"
    )
    mirror: bool | None = Field(default=None, description="Front-camera capture; defaults to server setting")
    sticker_id: int | None = Field(default=None, description="Catalog sticker id; omit for no sticker")
    debug: bool | None = Field(default=None, description="Draw face boxes and keypoints; defaults to server setting")

    def to_frame(self, image_width: int, image_height: int, mirror: bool) -> RenderFrame:
        return RenderFrame(
            faces=tuple(face.to_detection() for face in self.faces),
            frame_width=self.frame_width or image_width,
            frame_height=self.frame_height or image_height,
            mirror=mirror,
        )


class StickerInfo(BaseModel):
    """A catalog sticker."""

    id: int
    type: StickerType
    name: str
    image_ref: str
    offset_y_ratio: float
    scale_ratio: float


class StickersResponse(BaseModel):
    """Response for the sticker catalog endpoint."""

    stickers: list[StickerInfo]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    cached_images: int
    concurrent_renders: int
    queue_depth: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str

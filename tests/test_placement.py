"""Tests for per-sticker anchor placement."""

from __future__ import annotations

import dataclasses

import pytest

from stickerx.overlay.geometry import BoundingBox, FaceDetectionResult, Keypoint, KeypointType, Rect
from stickerx.overlay.placement import PLACEMENT_STRATEGIES, placement_rect
from stickerx.overlay.stickers import Sticker, StickerType

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

BOX = BoundingBox(0, 0, 100, 100)


def _sticker(sticker_type: StickerType, **overrides: object) -> Sticker:
    fields: dict[str, object] = {
        "id": 1,
        "type": sticker_type,
        "image_ref": f"{sticker_type}.png",
        "name": str(sticker_type),
        "offset_y_ratio": 0.5,
        "scale_ratio": 1.0,
    }
    fields.update(overrides)
    return Sticker(**fields)  # type: ignore[arg-type]


def _kp(kp_type: KeypointType, x: float, y: float) -> Keypoint:
    return Keypoint(kp_type, x, y)


def _assert_rect(rect: Rect | None, left: float, top: float, right: float, bottom: float) -> None:
    assert rect is not None
    assert rect.left == pytest.approx(left)
    assert rect.top == pytest.approx(top)
    assert rect.right == pytest.approx(right)
    assert rect.bottom == pytest.approx(bottom)


ALL_TYPES = list(StickerType)
DRAWABLE_TYPES = [t for t in StickerType if t != StickerType.NONE]
FULL_KEYPOINTS = [_kp(kp_type, 40 + i, 50 + i) for i, kp_type in enumerate(KeypointType)]


# ---------------------------------------------------------------------------
# Skip rules
# ---------------------------------------------------------------------------


class TestSkip:
    @pytest.mark.parametrize("keypoints", [[], FULL_KEYPOINTS])
    @pytest.mark.parametrize("box", [BOX, BoundingBox(10, 10, 10, 10), BoundingBox(-5, 3, 400, 90)])
    def test_none_sticker_always_skips(self, box: BoundingBox, keypoints: list[Keypoint]) -> None:
        assert placement_rect(_sticker(StickerType.NONE), box, keypoints, 1.0) is None

    @pytest.mark.parametrize("sticker_type", ALL_TYPES)
    def test_zero_width_box_skips(self, sticker_type: StickerType) -> None:
        box = BoundingBox(30, 0, 30, 100)
        assert placement_rect(_sticker(sticker_type), box, FULL_KEYPOINTS, 1.0) is None

    @pytest.mark.parametrize("sticker_type", ALL_TYPES)
    def test_zero_height_box_skips(self, sticker_type: StickerType) -> None:
        box = BoundingBox(0, 30, 100, 30)
        assert placement_rect(_sticker(sticker_type), box, FULL_KEYPOINTS, 1.0) is None

    @pytest.mark.parametrize("aspect", [0.0, -1.5])
    def test_non_positive_aspect_skips(self, aspect: float) -> None:
        assert placement_rect(_sticker(StickerType.MASK), BOX, [], aspect) is None

    def test_type_without_strategy_skips(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delitem(PLACEMENT_STRATEGIES, StickerType.MASK)
        assert placement_rect(_sticker(StickerType.MASK), BOX, [], 1.0) is None

    def test_coincident_eyes_draw_nothing(self) -> None:
        kps = [_kp(KeypointType.LEFT_EYE, 50, 40), _kp(KeypointType.RIGHT_EYE, 50, 60)]
        assert placement_rect(_sticker(StickerType.GLASSES), BOX, kps, 2.0) is None

    def test_every_drawable_type_has_a_strategy(self) -> None:
        assert set(PLACEMENT_STRATEGIES) == set(DRAWABLE_TYPES)


# ---------------------------------------------------------------------------
# Glasses
# ---------------------------------------------------------------------------


class TestGlasses:
    def test_centered_between_eyes(self) -> None:
        kps = [_kp(KeypointType.LEFT_EYE, 40, 50), _kp(KeypointType.RIGHT_EYE, 60, 50)]
        rect = placement_rect(_sticker(StickerType.GLASSES), BOX, kps, 2.0)
        # eye distance 20 -> width 44, height 22
        _assert_rect(rect, 28, 39, 72, 61)

    def test_scale_ratio_applies_to_eye_distance(self) -> None:
        kps = [_kp(KeypointType.LEFT_EYE, 40, 50), _kp(KeypointType.RIGHT_EYE, 60, 50)]
        rect = placement_rect(_sticker(StickerType.GLASSES, scale_ratio=1.5), BOX, kps, 1.0)
        assert rect is not None
        assert rect.width == pytest.approx(20 * 2.2 * 1.5)
        assert (rect.left + rect.right) / 2 == pytest.approx(50)
        assert (rect.top + rect.bottom) / 2 == pytest.approx(50)

    def test_eye_distance_is_absolute(self) -> None:
        # Mirroring puts the left eye to the right of the right eye.
        kps = [_kp(KeypointType.LEFT_EYE, 60, 50), _kp(KeypointType.RIGHT_EYE, 40, 50)]
        rect = placement_rect(_sticker(StickerType.GLASSES), BOX, kps, 2.0)
        _assert_rect(rect, 28, 39, 72, 61)

    def test_fallback_without_eyes(self) -> None:
        rect = placement_rect(_sticker(StickerType.GLASSES), BOX, [], 2.0)
        # center (50, 35), width 100, height 50
        _assert_rect(rect, 0, 10, 100, 60)

    @pytest.mark.parametrize("present", [KeypointType.LEFT_EYE, KeypointType.RIGHT_EYE])
    def test_single_eye_uses_fallback(self, present: KeypointType) -> None:
        rect = placement_rect(_sticker(StickerType.GLASSES), BOX, [_kp(present, 10, 90)], 2.0)
        _assert_rect(rect, 0, 10, 100, 60)


# ---------------------------------------------------------------------------
# Headwear (hat, cat ears, crown)
# ---------------------------------------------------------------------------


class TestHeadwear:
    @pytest.mark.parametrize("sticker_type", [StickerType.HAT, StickerType.CAT_EARS, StickerType.CROWN])
    def test_sits_above_box(self, sticker_type: StickerType) -> None:
        box = BoundingBox(0, 100, 100, 200)
        sticker = _sticker(sticker_type, offset_y_ratio=0.3, scale_ratio=1.2)
        rect = placement_rect(sticker, box, [], 1.0)
        # width 100*1.3*1.2 = 156, bottom 100 - 100*0.1*0.3 = 97
        _assert_rect(rect, -28, 97 - 156, 128, 97)

    def test_height_follows_aspect(self) -> None:
        rect = placement_rect(_sticker(StickerType.HAT, offset_y_ratio=0.0), BOX, [], 2.6)
        _assert_rect(rect, -15, -50, 115, 0)

    def test_keypoints_are_ignored(self) -> None:
        sticker = _sticker(StickerType.CROWN)
        assert placement_rect(sticker, BOX, FULL_KEYPOINTS, 1.0) == placement_rect(sticker, BOX, [], 1.0)


# ---------------------------------------------------------------------------
# Mustache, dog nose, mask
# ---------------------------------------------------------------------------


class TestMustache:
    def test_between_nose_and_mouth(self) -> None:
        kps = [_kp(KeypointType.NOSE_TIP, 50, 50), _kp(KeypointType.MOUTH_CENTER, 50, 60)]
        rect = placement_rect(_sticker(StickerType.MUSTACHE), BOX, kps, 2.0)
        # center (50, 55), width 60, height 30
        _assert_rect(rect, 20, 40, 80, 70)

    def test_fallback_when_mouth_missing(self) -> None:
        kps = [_kp(KeypointType.NOSE_TIP, 50, 50)]
        rect = placement_rect(_sticker(StickerType.MUSTACHE), BOX, kps, 2.0)
        _assert_rect(rect, 20, 55, 80, 85)


class TestDogNose:
    def test_on_nose_tip(self) -> None:
        kps = [_kp(KeypointType.NOSE_TIP, 45, 52)]
        rect = placement_rect(_sticker(StickerType.DOG_NOSE), BOX, kps, 1.0)
        _assert_rect(rect, 25, 32, 65, 72)

    def test_fallback_without_nose(self) -> None:
        kps = [_kp(KeypointType.MOUTH_CENTER, 10, 10)]
        rect = placement_rect(_sticker(StickerType.DOG_NOSE), BOX, kps, 1.0)
        _assert_rect(rect, 30, 35, 70, 75)


class TestMask:
    def test_raised_box_center(self) -> None:
        rect = placement_rect(_sticker(StickerType.MASK), BOX, FULL_KEYPOINTS, 1.0)
        _assert_rect(rect, 0, -10, 100, 90)

    def test_scale_ratio(self) -> None:
        rect = placement_rect(_sticker(StickerType.MASK, scale_ratio=0.5), BOX, [], 1.0)
        _assert_rect(rect, 25, 15, 75, 65)


# ---------------------------------------------------------------------------
# Cross-cutting properties
# ---------------------------------------------------------------------------


class TestProperties:
    @pytest.mark.parametrize(
        "sticker_type",
        [StickerType.GLASSES, StickerType.MUSTACHE, StickerType.DOG_NOSE, StickerType.MASK],
    )
    def test_offset_ratio_only_affects_headwear(self, sticker_type: StickerType) -> None:
        low = placement_rect(_sticker(sticker_type, offset_y_ratio=0.0), BOX, FULL_KEYPOINTS, 1.5)
        high = placement_rect(_sticker(sticker_type, offset_y_ratio=0.9), BOX, FULL_KEYPOINTS, 1.5)
        assert low == high

    def test_offset_ratio_moves_headwear(self) -> None:
        low = placement_rect(_sticker(StickerType.HAT, offset_y_ratio=0.0), BOX, [], 1.0)
        high = placement_rect(_sticker(StickerType.HAT, offset_y_ratio=1.0), BOX, [], 1.0)
        assert low is not None and high is not None
        assert high.bottom == pytest.approx(low.bottom - 10)

    @pytest.mark.parametrize("sticker_type", DRAWABLE_TYPES)
    def test_aspect_ratio_preserved(self, sticker_type: StickerType) -> None:
        rect = placement_rect(_sticker(sticker_type), BOX, FULL_KEYPOINTS, 1.75)
        assert rect is not None
        assert rect.width / rect.height == pytest.approx(1.75)

    @pytest.mark.parametrize("sticker_type", DRAWABLE_TYPES)
    def test_identical_faces_get_identical_rects(self, sticker_type: StickerType) -> None:
        first = FaceDetectionResult(BoundingBox(10, 20, 90, 120), tuple(FULL_KEYPOINTS), 0.9)
        second = dataclasses.replace(first, keypoints=tuple(dataclasses.replace(kp) for kp in FULL_KEYPOINTS))
        assert first is not second

        sticker = _sticker(sticker_type)
        rect_a = placement_rect(sticker, first.bounding_box, first.keypoints, 1.2)
        rect_b = placement_rect(sticker, second.bounding_box, second.keypoints, 1.2)
        assert rect_a == rect_b

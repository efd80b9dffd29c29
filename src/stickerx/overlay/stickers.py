"""Sticker descriptors and the built-in sticker catalog."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class StickerType(StrEnum):
    NONE = "none"
    GLASSES = "glasses"
    HAT = "hat"
    MUSTACHE = "mustache"
    CAT_EARS = "cat_ears"
    DOG_NOSE = "dog_nose"
    CROWN = "crown"
    MASK = "mask"


@dataclass(frozen=True)
class Sticker:
    """Static description of one sticker.

    ``image_ref`` is an opaque handle resolved by an asset source; for the
    file-backed source it is a path relative to the assets directory.
    """

    id: int
    type: StickerType
    image_ref: str
    name: str
    offset_y_ratio: float = 0.5
    scale_ratio: float = 1.0

    def __post_init__(self) -> None:
        if self.scale_ratio <= 0:
            raise ValueError(f"Sticker '{self.name}' scale_ratio must be positive, got {self.scale_ratio}")

    @property
    def is_overlay(self) -> bool:
        """False for the "no sticker" entry."""
        return self.type != StickerType.NONE


# ---------------------------------------------------------------------------
# Built-in catalog
# ---------------------------------------------------------------------------


STICKER_CATALOG: dict[int, Sticker] = {
    0: Sticker(id=0, type=StickerType.NONE, image_ref="none.png", name="None", offset_y_ratio=0.0),
    1: Sticker(id=1, type=StickerType.GLASSES, image_ref="glasses.png", name="Glasses", offset_y_ratio=0.35),
    2: Sticker(
        id=2, type=StickerType.HAT, image_ref="hat.png", name="Hat", offset_y_ratio=0.3, scale_ratio=1.2
    ),
    3: Sticker(
        id=3,
        type=StickerType.CAT_EARS,
        image_ref="cat_ears.png",
        name="Cat ears",
        offset_y_ratio=0.2,
        scale_ratio=1.3,
    ),
    4: Sticker(id=4, type=StickerType.MUSTACHE, image_ref="mustache.png", name="Mustache", offset_y_ratio=0.7),
    5: Sticker(id=5, type=StickerType.DOG_NOSE, image_ref="dog_nose.png", name="Dog nose", offset_y_ratio=0.55),
    6: Sticker(
        id=6, type=StickerType.CROWN, image_ref="crown.png", name="Crown", offset_y_ratio=0.15, scale_ratio=1.1
    ),
    7: Sticker(id=7, type=StickerType.MASK, image_ref="mask.png", name="Mask"),
}


def get_sticker(sticker_id: int) -> Sticker:
    """Look up a catalog sticker by id."""
    try:
        return STICKER_CATALOG[sticker_id]
    except KeyError:
        raise KeyError(f"Unknown sticker: {sticker_id}") from None

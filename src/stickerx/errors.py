"""Exception types raised by StickerX."""

from __future__ import annotations


class StickerXError(Exception):
    """Base class for StickerX errors."""


class AssetDecodeError(StickerXError):
    """A sticker image could not be located or decoded."""

    def __init__(self, image_ref: str, reason: str) -> None:
        super().__init__(f"Cannot decode sticker image '{image_ref}': {reason}")
        self.image_ref = image_ref
        self.reason = reason

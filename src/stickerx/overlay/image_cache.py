"""Sticker image loading and the bounded LRU cache of decoded images.

Decoding is the only expensive step in drawing a sticker, so decoded
buffers are memoized per ``image_ref``. Decode failures are remembered as
well so a broken asset is not re-read on every frame.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import cv2
import numpy as np

from stickerx.errors import AssetDecodeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY: int = 10


# ---------------------------------------------------------------------------
# Asset sources
# ---------------------------------------------------------------------------


class AssetSource(Protocol):
    """Resolves a sticker ``image_ref`` to pixels."""

    def load(self, image_ref: str) -> NDArray[np.uint8]:
        """Decode the referenced image.

        Returns:
            HxWx4 BGRA uint8 array.

        Raises:
            AssetDecodeError: If the image is missing or cannot be decoded.
        """
        ...


def to_bgra(image: NDArray[np.generic]) -> NDArray[np.uint8]:
    """Normalize a decoded image to 4-channel 8-bit BGRA."""
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise ValueError(f"Unsupported image depth: {image.dtype}")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    channels = image.shape[2]
    if channels == 4:
        return image
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGRA)
    raise ValueError(f"Unsupported channel count: {channels}")


class FileAssetSource:
    """Loads sticker images from files under an assets directory."""

    def __init__(self, assets_dir: str | Path) -> None:
        self._root = Path(assets_dir).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def load(self, image_ref: str) -> NDArray[np.uint8]:
        path = (self._root / image_ref).resolve()
        if not path.is_relative_to(self._root):
            raise AssetDecodeError(image_ref, "path escapes the assets directory")

        try:
            data = path.read_bytes()
        except OSError as exc:
            raise AssetDecodeError(image_ref, str(exc)) from exc

        image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if image is None or image.size == 0:
            raise AssetDecodeError(image_ref, "unrecognized or corrupt image data")

        try:
            return to_bgra(image)
        except ValueError as exc:
            raise AssetDecodeError(image_ref, str(exc)) from exc


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ImageCache:
    """Thread-safe LRU cache of decoded sticker images keyed by ``image_ref``."""

    def __init__(self, source: AssetSource, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be at least 1, got {capacity}")
        self._source = source
        self._capacity = capacity
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, NDArray[np.uint8]] = OrderedDict()
        self._failed: OrderedDict[str, None] = OrderedDict()
        self._generation: int = 0

    # -- Public API ---------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, image_ref: str) -> NDArray[np.uint8] | None:
        """Return the decoded image, decoding and caching it on a miss.

        Returns None if the asset cannot be decoded. The failure is
        remembered until ``forget`` or ``clear`` is called.
        """
        with self._lock:
            cached = self._entries.get(image_ref)
            if cached is not None:
                self._entries.move_to_end(image_ref)
                return cached
            if image_ref in self._failed:
                return None
            generation = self._generation

        try:
            image = self._source.load(image_ref)
        except AssetDecodeError as exc:
            logger.warning("%s", exc)
            self._remember_failure(image_ref, generation)
            return None

        with self._lock:
            # A clear() during the decode wins; the result is not kept.
            if self._generation != generation:
                return image
            # Another thread may have decoded the same image meanwhile.
            existing = self._entries.get(image_ref)
            if existing is not None:
                self._entries.move_to_end(image_ref)
                return existing
            self._entries[image_ref] = image
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted sticker image %s", evicted)
            logger.debug("Cached sticker image %s (%dx%d)", image_ref, image.shape[1], image.shape[0])
            return image

    def forget(self, image_ref: str) -> None:
        """Drop one entry, including a remembered decode failure."""
        with self._lock:
            self._entries.pop(image_ref, None)
            self._failed.pop(image_ref, None)

    def clear(self) -> None:
        """Release all cached images."""
        with self._lock:
            self._entries.clear()
            self._failed.clear()
            self._generation += 1
            logger.info("Sticker image cache cleared")

    def keys(self) -> list[str]:
        """Cached refs from least to most recently used."""
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, image_ref: object) -> bool:
        with self._lock:
            return image_ref in self._entries

    # -- Internal -----------------------------------------------------------

    def _remember_failure(self, image_ref: str, generation: int) -> None:
        with self._lock:
            if self._generation != generation:
                return
            self._failed[image_ref] = None
            self._failed.move_to_end(image_ref)
            while len(self._failed) > self._capacity:
                self._failed.popitem(last=False)

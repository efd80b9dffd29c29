"""Single-slot, latest-wins hand-off of frame snapshots.

The detection pipeline publishes snapshots from its own thread; the render
thread takes whatever is newest. Nothing is queued: a snapshot published
before the previous one was taken replaces it.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stickerx.overlay.geometry import RenderFrame


class LatestFrameSlot:
    """Holds at most one pending ``RenderFrame``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: RenderFrame | None = None
        self._published: int = 0
        self._superseded: int = 0

    def publish(self, frame: RenderFrame) -> None:
        """Store ``frame`` as the newest snapshot, discarding any untaken one."""
        with self._lock:
            if self._pending is not None:
                self._superseded += 1
            self._pending = frame
            self._published += 1

    def take(self) -> RenderFrame | None:
        """Return and clear the pending snapshot, or None if nothing is new."""
        with self._lock:
            frame = self._pending
            self._pending = None
            return frame

    def peek(self) -> RenderFrame | None:
        with self._lock:
            return self._pending

    def clear(self) -> None:
        with self._lock:
            self._pending = None

    @property
    def published_count(self) -> int:
        with self._lock:
            return self._published

    @property
    def superseded_count(self) -> int:
        """Snapshots replaced before the renderer took them."""
        with self._lock:
            return self._superseded

"""Lifecycle tracking for externally visible output handles.

A handle is an opaque `blob:` style reference to the bytes of one conversion
result. The registry owns every handle it issues until it is released, either
explicitly, on clear-all, or when the host reports that the element showing it
was removed from the display.
"""

from __future__ import annotations

import uuid

from PySide6.QtCore import QObject, Signal, Slot

from image_converter.errors import HandleReleasedError
from image_converter.logger import get_logger

_logger = get_logger("handles")

HANDLE_PREFIX = "blob:image-converter/"


class HandleRegistry(QObject):
    # Emits: handle
    released = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._live: dict[str, tuple[bytes, str]] = {}
        # Minted uuid handles cannot collide; only caller-chosen names need a tombstone
        self._external: set[str] = set()
        self._released: set[str] = set()

    def create(self, data: bytes, mime_type: str) -> str:
        handle = f"{HANDLE_PREFIX}{uuid.uuid4()}"
        self._store(handle, data, mime_type)
        return handle

    def register(self, handle: str, data: bytes, mime_type: str) -> None:
        """Track a caller-named handle. Its name can never be reused once released."""
        if handle in self._released:
            raise ValueError(f"handle already released: {handle}")
        self._store(handle, data, mime_type)
        self._external.add(handle)

    def _store(self, handle: str, data: bytes, mime_type: str) -> None:
        if handle in self._live:
            raise ValueError(f"handle already registered: {handle}")
        self._live[handle] = (bytes(data), mime_type)
        _logger.debug("register: %s (%d bytes, live=%d)", handle, len(data), len(self._live))

    def resolve(self, handle: str) -> bytes:
        try:
            return self._live[handle][0]
        except KeyError:
            raise HandleReleasedError(f"handle is not live: {handle}") from None

    def mime_type(self, handle: str) -> str:
        try:
            return self._live[handle][1]
        except KeyError:
            raise HandleReleasedError(f"handle is not live: {handle}") from None

    def is_live(self, handle: str) -> bool:
        return handle in self._live

    @property
    def live_count(self) -> int:
        return len(self._live)

    def release(self, handle: str) -> bool:
        """Release `handle`. Unknown or already-released handles are a no-op."""
        if self._live.pop(handle, None) is None:
            return False
        if handle in self._external:
            self._external.discard(handle)
            self._released.add(handle)
        _logger.debug("release: %s (live=%d)", handle, len(self._live))
        self.released.emit(handle)
        return True

    def release_all(self) -> int:
        handles = list(self._live)
        for handle in handles:
            self.release(handle)
        if handles:
            _logger.debug("release_all: %d handle(s)", len(handles))
        return len(handles)

    @Slot(str)
    def element_removed(self, handle: str) -> None:
        """Passive cleanup hook for the host UI's "element detached" event."""
        self.release(handle)

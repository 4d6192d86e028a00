"""Pytest configuration.

The checksum worker, the handle registry and the orchestrator are QObjects, and
checksum replies are delivered through the Qt event loop. We create a single
offscreen `QApplication` for the entire session as early as possible and cleanly
shut it down at the end.
"""

from __future__ import annotations

import os
from typing import Any

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


PNG_HEADER = b"\x89PNG\r\n\x1a\n"
JPEG_HEADER = b"\xff\xd8\xff\xe0"


class FakeCodec:
    """Stands in for pyvips: fixed probe dimensions, deterministic output bytes."""

    def __init__(self, dimensions: tuple[int, int] = (800, 600), unsupported: tuple = ()) -> None:
        self.dimensions = dimensions
        self.unsupported = set(unsupported)
        self.fail_render_for: set[bytes] = set()
        self.fail_probe_for: set[bytes] = set()
        self.renders: list[tuple[int, int, str, int | None]] = []

    def probe_dimensions(self, data: bytes) -> tuple[int, int]:
        from image_converter.errors import DecodeEncodeError

        if data in self.fail_probe_for:
            raise DecodeEncodeError("corrupt header")
        return self.dimensions

    def render(self, data, width, height, output_format, quality):  # noqa: ANN001
        from image_converter.errors import DecodeEncodeError

        if data in self.fail_render_for:
            raise DecodeEncodeError("encoder exploded")
        self.renders.append((width, height, output_format.value, quality))
        return f"{output_format.value}:{width}x{height}:{quality}".encode() + data[-4:]

    def supports(self, output_format) -> bool:  # noqa: ANN001
        return output_format not in self.unsupported


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def make_png():
    def _make(name: str = "sample.png", payload: bytes = b"pixels", **kwargs):
        from image_converter.models import InputFile

        return InputFile.from_bytes(name, PNG_HEADER + payload, last_modified=kwargs.pop("last_modified", 1.0), **kwargs)

    return _make

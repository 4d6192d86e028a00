"""Decode/resize/encode using pyvips.

This is the only place that touches pixels. Everything else in the package
treats it as an opaque `render(source, size, format, quality) -> bytes`
capability, so tests can substitute a fake.
"""

from __future__ import annotations

import contextlib
from typing import Any, Protocol

from image_converter.errors import DecodeEncodeError
from image_converter.logger import get_logger
from image_converter.models import OutputFormat

_logger = get_logger("codec")

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Outputs are never re-read; keep the operation cache from holding buffers
        with contextlib.suppress(Exception):
            pyvips.cache_set_max(0)
            pyvips.cache_set_max_mem(0)
        _pyvips = pyvips
    return _pyvips


class Codec(Protocol):
    def probe_dimensions(self, data: bytes) -> tuple[int, int]: ...

    def render(
        self, data: bytes, width: int, height: int, output_format: OutputFormat, quality: int | None
    ) -> bytes: ...

    def supports(self, output_format: OutputFormat) -> bool: ...


class PyvipsCodec:
    def __init__(self) -> None:
        self._support: dict[OutputFormat, bool] = {}

    def probe_dimensions(self, data: bytes) -> tuple[int, int]:
        """Read width/height from the header without decoding pixels."""
        pyvips = _get_pyvips_module()
        try:
            image = pyvips.Image.new_from_buffer(data, "", access="sequential")
            return int(image.width), int(image.height)
        except pyvips.Error as e:
            raise DecodeEncodeError(f"could not read image header: {e}") from e

    def render(
        self, data: bytes, width: int, height: int, output_format: OutputFormat, quality: int | None
    ) -> bytes:
        pyvips = _get_pyvips_module()
        try:
            image = pyvips.Image.new_from_buffer(data, "")
            with contextlib.suppress(pyvips.Error):
                image = image.colourspace("srgb")
            if image.format != "uchar":
                image = image.cast("uchar")
            # JPEG has no alpha channel
            if output_format is OutputFormat.JPEG and image.hasalpha():
                image = image.flatten(background=[0, 0, 0])
            if (image.width, image.height) != (width, height):
                image = image.thumbnail_image(width, height=height, size=pyvips.Size.FORCE)

            options: dict[str, Any] = {}
            if output_format.lossy and quality is not None:
                options["Q"] = int(quality)
                # jpegsave rejects Q=0; webpsave accepts the full 0-100 range
                if output_format is OutputFormat.JPEG:
                    options["Q"] = max(1, options["Q"])
            out = image.write_to_buffer(output_format.extension, **options)
        except pyvips.Error as e:
            raise DecodeEncodeError(f"libvips failed to produce {output_format.label}: {e}") from e

        out = bytes(out)
        if not out:
            raise DecodeEncodeError(f"libvips produced an empty {output_format.label} buffer")
        _logger.debug(
            "render: %s %dx%d q=%s -> %d bytes", output_format.value, width, height, quality, len(out)
        )
        return out

    def supports(self, output_format: OutputFormat) -> bool:
        cached = self._support.get(output_format)
        if cached is not None:
            return cached
        pyvips = _get_pyvips_module()
        try:
            pyvips.Image.black(1, 1).write_to_buffer(output_format.extension)
            ok = True
        except pyvips.Error as e:
            _logger.warning("libvips cannot encode %s: %s", output_format.label, e)
            ok = False
        self._support[output_format] = ok
        return ok

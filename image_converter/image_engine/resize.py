"""Aspect-preserving resize calculation.

Only ever shrinks: the longest side is capped at the requested maximum and the
other side follows from the same scale factor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar

from image_converter.logger import get_logger

_logger = get_logger("resize")


@dataclass(frozen=True)
class ResizeSpec:
    max_dimension: int | None = None

    ORIGINAL: ClassVar[ResizeSpec]

    @classmethod
    def max_side(cls, n: int) -> ResizeSpec:
        if n <= 0:
            raise ValueError("max dimension must be positive")
        return cls(int(n))

    @property
    def is_original(self) -> bool:
        return self.max_dimension is None

    @property
    def label(self) -> str:
        return "Original" if self.max_dimension is None else f"{self.max_dimension}px"


ResizeSpec.ORIGINAL = ResizeSpec()

RESIZE_CATALOG: tuple[ResizeSpec, ...] = (
    ResizeSpec.ORIGINAL,
    *(ResizeSpec(n) for n in (16, 64, 128, 256, 512, 640, 1024, 1280, 1920, 2560, 4096)),
)


def parse_resize_spec(value: object) -> ResizeSpec:
    """Coerce a UI value ("original", "512", 512, a ResizeSpec) into a spec.

    Anything that is not a positive number falls back to ORIGINAL.
    """
    if isinstance(value, ResizeSpec):
        return value if value.is_original or value.max_dimension > 0 else ResizeSpec.ORIGINAL  # type: ignore[operator]
    if value is None or isinstance(value, bool):
        return ResizeSpec.ORIGINAL
    if isinstance(value, str):
        text = value.strip()
        if not text or text.lower() == "original":
            return ResizeSpec.ORIGINAL
        try:
            value = float(text)
        except ValueError:
            return ResizeSpec.ORIGINAL
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return ResizeSpec.ORIGINAL
    n = int(value)
    return ResizeSpec(n) if n > 0 else ResizeSpec.ORIGINAL


def catalog_entry(index: int, catalog: tuple[ResizeSpec, ...] = RESIZE_CATALOG) -> ResizeSpec:
    """Slider-style lookup; out-of-range indexes clamp to the ends."""
    if not catalog:
        return ResizeSpec.ORIGINAL
    return catalog[max(0, min(len(catalog) - 1, int(index)))]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def resize_dimensions(width: int, height: int, spec: object) -> tuple[int, int]:
    """Return output (width, height) for `spec`, never upscaling."""
    resize = parse_resize_spec(spec)
    if resize.is_original:
        return width, height

    target = resize.max_dimension
    longest = max(width, height)
    if longest <= target:  # type: ignore[operator]
        return width, height

    # One scale factor for both axes; rounding each axis independently from it
    scale = target / longest  # type: ignore[operator]
    if width >= height:
        out_w, out_h = target, _round_half_up(height * scale)
    else:
        out_w, out_h = _round_half_up(width * scale), target
    out = (max(1, int(out_w)), max(1, int(out_h)))  # type: ignore[arg-type]
    _logger.debug("resize: %dx%d -> %dx%d (%s)", width, height, out[0], out[1], resize.label)
    return out

"""Guard chain: size, sniffed-format and dimension checks.

Every check is a pure decision over facts supplied by the caller. The chain
runs them in a fixed order and stops at the first rejection.
"""

from __future__ import annotations

import math
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum

from image_converter.image_engine.sniffer import SniffedFormat
from image_converter.naming import format_bytes

MAX_FILE_SIZE = 50 * 1024 * 1024
MAX_DIMENSION = 20000
SUPPORTED_FORMATS = frozenset({SniffedFormat.PNG, SniffedFormat.JPEG})


class GuardReason(str, Enum):
    TOO_LARGE = "TooLarge"
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    DIMENSION_TOO_LARGE = "DimensionTooLarge"
    INVALID_DIMENSIONS = "InvalidDimensions"


@dataclass(frozen=True)
class GuardVerdict:
    accepted: bool
    reason: GuardReason | None = None
    message: str = ""

    @classmethod
    def accept(cls) -> GuardVerdict:
        return cls(True)

    @classmethod
    def reject(cls, reason: GuardReason, message: str) -> GuardVerdict:
        return cls(False, reason, message)

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class GuardLimits:
    max_file_size: int = MAX_FILE_SIZE
    max_dimension: int = MAX_DIMENSION
    supported_formats: frozenset[SniffedFormat] = field(default=SUPPORTED_FORMATS)


_ACCEPTED = GuardVerdict.accept()


def _is_real(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def check_size(size_bytes: object, max_file_size: int = MAX_FILE_SIZE) -> GuardVerdict:
    if not _is_real(size_bytes) or size_bytes < 0:  # type: ignore[operator]
        return GuardVerdict.reject(GuardReason.INVALID_DIMENSIONS, "Invalid file size")
    if size_bytes > max_file_size:  # type: ignore[operator]
        return GuardVerdict.reject(GuardReason.TOO_LARGE, f"File size exceeds {format_bytes(max_file_size)}")
    return _ACCEPTED


def check_format(
    sniffed: SniffedFormat | None, supported: Collection[SniffedFormat] = SUPPORTED_FORMATS
) -> GuardVerdict:
    if sniffed is None or sniffed is SniffedFormat.UNKNOWN or sniffed not in supported:
        return GuardVerdict.reject(GuardReason.UNSUPPORTED_FORMAT, "Unsupported or spoofed format")
    return _ACCEPTED


def check_dimensions(dimensions: tuple[object, object] | None, max_dimension: int = MAX_DIMENSION) -> GuardVerdict:
    if dimensions is None:
        return GuardVerdict.reject(GuardReason.INVALID_DIMENSIONS, "Invalid dimensions")
    width, height = dimensions
    for value in (width, height):
        if not _is_real(value) or value <= 0 or not float(value).is_integer():  # type: ignore[operator,arg-type]
            return GuardVerdict.reject(GuardReason.INVALID_DIMENSIONS, "Invalid dimensions")
    if width > max_dimension or height > max_dimension:  # type: ignore[operator]
        return GuardVerdict.reject(GuardReason.DIMENSION_TOO_LARGE, f"Dimensions exceed {max_dimension:,}px")
    return _ACCEPTED


def evaluate(
    size_bytes: object,
    sniffed: SniffedFormat | None,
    dimensions: tuple[object, object] | None,
    limits: GuardLimits | None = None,
) -> GuardVerdict:
    """Run the size, format and dimension checks in order, short-circuiting."""
    limits = limits or GuardLimits()
    verdict = check_size(size_bytes, limits.max_file_size)
    if not verdict:
        return verdict
    verdict = check_format(sniffed, limits.supported_formats)
    if not verdict:
        return verdict
    return check_dimensions(dimensions, limits.max_dimension)


def evaluate_source(size_bytes: object, sniffed: SniffedFormat | None, limits: GuardLimits | None = None) -> GuardVerdict:
    """The checks that can run before any decoding (size and format)."""
    limits = limits or GuardLimits()
    verdict = check_size(size_bytes, limits.max_file_size)
    if not verdict:
        return verdict
    return check_format(sniffed, limits.supported_formats)

"""Display names, download file names and human-readable labels."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from image_converter.image_engine.resize import ResizeSpec
    from image_converter.models import OutputFormat

DEFAULT_NAME = "converted-image"
MAX_NAME_LENGTH = 120

_SIZE_UNITS = ("B", "KB", "MB", "GB")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_UNSAFE_RE = re.compile(r"[^a-z0-9_-]+")


@dataclass(frozen=True)
class FileNameData:
    display_name: str
    download_name: str


def format_bytes(size_bytes: float) -> str:
    if not isinstance(size_bytes, (int, float)) or not math.isfinite(size_bytes) or size_bytes == 0:
        return "0 B"
    if size_bytes < 0:
        raise ValueError("size_bytes must be non-negative")
    i = 0
    size = float(size_bytes)
    while size >= 1024 and i < len(_SIZE_UNITS) - 1:
        size /= 1024
        i += 1
    decimals = 0 if size >= 10 or i == 0 else 1
    return f"{size:.{decimals}f} {_SIZE_UNITS[i]}"


def file_name_data(original_name: str | None) -> FileNameData:
    """Derive the display name and a filesystem-safe download stem from a file name."""
    base = _EXTENSION_RE.sub("", original_name or DEFAULT_NAME)
    display = base.strip()[:MAX_NAME_LENGTH] or DEFAULT_NAME
    download = _UNSAFE_RE.sub("-", display.lower()).strip("-") or DEFAULT_NAME
    return FileNameData(display_name=display, download_name=download)


def download_file_name(
    download_name: str,
    output_format: OutputFormat,
    quality_percent: int | None,
    resize: ResizeSpec,
) -> str:
    # -q<quality> only makes sense for lossy targets
    suffix = ""
    if output_format.lossy and quality_percent is not None:
        suffix += f"-q{quality_percent}"
    if not resize.is_original:
        suffix += f"-{resize.max_dimension}px"
    return f"{download_name}{suffix}{output_format.extension}"


def dimensions_label(width: int, height: int) -> str:
    return f"{width} × {height}"


def quality_label(quality_percent: int | None) -> str:
    return "" if quality_percent is None else f"Quality {quality_percent}%"


def source_descriptor(size_bytes: int, mime_type: str | None, width: int, height: int) -> str:
    return " • ".join((format_bytes(size_bytes), mime_type or "unknown", dimensions_label(width, height)))


def converted_info(
    size_bytes: int,
    mime_type: str,
    width: int,
    height: int,
    quality_percent: int | None,
    resize: ResizeSpec,
) -> str:
    parts = [format_bytes(size_bytes), mime_type, dimensions_label(width, height)]
    if quality_percent is not None:
        parts.append(quality_label(quality_percent))
    if not resize.is_original:
        parts.append(resize.label)
    return " • ".join(parts)

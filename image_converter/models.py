"""Value objects passed through the conversion pipeline."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from image_converter import naming
from image_converter.image_engine.resize import ResizeSpec, parse_resize_spec

if TYPE_CHECKING:
    from image_converter.image_engine.checksum_worker import ChecksumRecord
    from image_converter.image_engine.guards import GuardReason


class OutputFormat(str, Enum):
    WEBP = "webp"
    PNG = "png"
    JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return ".jpg" if self is OutputFormat.JPEG else f".{self.value}"

    @property
    def lossy(self) -> bool:
        return self is not OutputFormat.PNG

    @property
    def label(self) -> str:
        return {OutputFormat.WEBP: "WebP", OutputFormat.PNG: "PNG", OutputFormat.JPEG: "JPG"}[self]

    @property
    def description(self) -> str:
        return {
            OutputFormat.WEBP: "Best compression",
            OutputFormat.PNG: "Lossless",
            OutputFormat.JPEG: "Wide compatibility",
        }[self]

    @classmethod
    def parse(cls, value: str | OutputFormat) -> OutputFormat:
        if isinstance(value, OutputFormat):
            return value
        text = str(value).strip().lower().removeprefix("image/").lstrip(".")
        if text == "jpg":
            text = "jpeg"
        return cls(text)


@dataclass(frozen=True)
class InputFile:
    """A user-supplied file: identity plus raw bytes. Immutable once accepted."""

    name: str
    size: int
    last_modified: float
    data: bytes = field(repr=False)
    declared_type: str | None = None

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        *,
        last_modified: float | None = None,
        declared_type: str | None = None,
    ) -> InputFile:
        return cls(
            name=name,
            size=len(data),
            last_modified=time.time() if last_modified is None else last_modified,
            data=bytes(data),
            declared_type=declared_type,
        )

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> InputFile:
        p = Path(path)
        data = p.read_bytes()
        return cls(name=p.name, size=len(data), last_modified=p.stat().st_mtime, data=data)

    @property
    def identity(self) -> tuple[str, int, float]:
        return self.name, self.size, self.last_modified


@dataclass(frozen=True)
class RequestTemplate:
    """Batch-wide conversion settings applied to every file."""

    output_format: OutputFormat = OutputFormat.WEBP
    quality_percent: int = 90
    resize: ResizeSpec = ResizeSpec.ORIGINAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "output_format", OutputFormat.parse(self.output_format))
        object.__setattr__(self, "resize", parse_resize_spec(self.resize))
        q = int(self.quality_percent)
        if not 0 <= q <= 100:
            raise ValueError(f"quality_percent must be within 0-100, got {self.quality_percent}")
        object.__setattr__(self, "quality_percent", q)

    def for_file(self, file: InputFile) -> ConversionRequest:
        return ConversionRequest(file, self.output_format, self.quality_percent, self.resize)


@dataclass(frozen=True)
class ConversionRequest:
    file: InputFile
    target_format: OutputFormat
    quality_percent: int
    resize_spec: ResizeSpec

    @property
    def effective_quality(self) -> int | None:
        """Quality actually handed to the encoder; None for lossless output."""
        if not self.target_format.lossy:
            return None
        # JPEG encoders take 1-100
        if self.target_format is OutputFormat.JPEG:
            return max(1, self.quality_percent)
        return self.quality_percent


@dataclass(frozen=True)
class ConversionResult:
    output_bytes: bytes = field(repr=False)
    output_width: int
    output_height: int
    mime_type: str
    source_descriptor: str
    display_name: str
    download_name: str
    handle: str
    checksum: ChecksumRecord = field(compare=False)
    output_format: OutputFormat
    quality_percent: int | None
    resize: ResizeSpec

    @property
    def size(self) -> int:
        return len(self.output_bytes)

    @property
    def title(self) -> str:
        q = naming.quality_label(self.quality_percent)
        return f"{self.display_name} ({q})" if q else self.display_name

    @property
    def converted_info(self) -> str:
        return naming.converted_info(
            self.size, self.mime_type, self.output_width, self.output_height, self.quality_percent, self.resize
        )


@dataclass(frozen=True)
class Converted:
    result: ConversionResult


@dataclass(frozen=True)
class Skipped:
    file_name: str
    reason: GuardReason | None
    message: str


@dataclass
class BatchReport:
    outcomes: list[Converted | Skipped] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    rate_limited: bool = False
    unprocessed: list[InputFile] = field(default_factory=list)

    @property
    def converted(self) -> list[ConversionResult]:
        return [o.result for o in self.outcomes if isinstance(o, Converted)]

    @property
    def skipped(self) -> list[Skipped]:
        return [o for o in self.outcomes if isinstance(o, Skipped)]

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from .image_engine.guards import MAX_DIMENSION, MAX_FILE_SIZE, SUPPORTED_FORMATS, GuardLimits
from .image_engine.rate_limiter import SlidingWindowRateLimiter
from .image_engine.resize import RESIZE_CATALOG, ResizeSpec, parse_resize_spec
from .image_engine.sniffer import SniffedFormat
from .logger import get_logger
from .models import OutputFormat, RequestTemplate

_logger = get_logger("settings")


@dataclass(frozen=True)
class ConverterConfig:
    """Validated converter limits and defaults."""

    max_file_size: int = MAX_FILE_SIZE
    max_dimension: int = MAX_DIMENSION
    supported_sniff_formats: frozenset[SniffedFormat] = SUPPORTED_FORMATS
    rate_limit_max_admissions: int = 20
    rate_limit_window_ms: int = 60_000
    resize_catalog: tuple[ResizeSpec, ...] = RESIZE_CATALOG
    quality_percent: int = 90
    output_format: OutputFormat = OutputFormat.WEBP
    checksums_enabled: bool = True

    def __post_init__(self) -> None:
        if self.max_file_size < 0:
            raise ValueError("max_file_size must be non-negative")
        if self.max_dimension <= 0:
            raise ValueError("max_dimension must be positive")
        if self.rate_limit_max_admissions <= 0 or self.rate_limit_window_ms <= 0:
            raise ValueError("rate limit values must be positive")
        if not 0 <= self.quality_percent <= 100:
            raise ValueError("quality_percent must be within 0-100")
        object.__setattr__(self, "output_format", OutputFormat.parse(self.output_format))

    def guard_limits(self) -> GuardLimits:
        return GuardLimits(self.max_file_size, self.max_dimension, frozenset(self.supported_sniff_formats))

    def make_rate_limiter(self) -> SlidingWindowRateLimiter:
        return SlidingWindowRateLimiter(self.rate_limit_max_admissions, self.rate_limit_window_ms / 1000.0)

    def default_template(self, resize: object = None) -> RequestTemplate:
        return RequestTemplate(self.output_format, self.quality_percent, parse_resize_spec(resize))


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "max_file_size": MAX_FILE_SIZE,
        "max_dimension": MAX_DIMENSION,
        "supported_sniff_formats": ["png", "jpeg"],
        "rate_limit": {"max_admissions": 20, "window_ms": 60_000},
        "resize_catalog": [spec.max_dimension for spec in RESIZE_CATALOG if not spec.is_original],
        "quality_percent": 90,
        "output_format": "webp",
        "checksums_enabled": True,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path) or ".", exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    def _positive_int(self, key: str, value: Any, fallback: int) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            _logger.warning("invalid %s: %r (using %s)", key, value, fallback)
            return fallback
        return int(value)

    def to_config(self) -> ConverterConfig:
        """Build a ConverterConfig, replacing invalid stored values with defaults."""
        defaults = ConverterConfig()

        formats: set[SniffedFormat] = set()
        for name in self.get("supported_sniff_formats") or ():
            try:
                fmt = SniffedFormat(str(name).lower())
            except ValueError:
                _logger.warning("unknown sniff format in settings: %r", name)
                continue
            if fmt is not SniffedFormat.UNKNOWN:
                formats.add(fmt)

        rate = self.get("rate_limit")
        rate = rate if isinstance(rate, dict) else {}

        catalog = [ResizeSpec.ORIGINAL]
        for value in self.get("resize_catalog") or ():
            spec = parse_resize_spec(value)
            if spec.is_original:
                _logger.warning("invalid resize_catalog entry: %r", value)
            elif spec not in catalog:
                catalog.append(spec)
        catalog[1:] = sorted(catalog[1:], key=lambda s: s.max_dimension or 0)

        quality = self.get("quality_percent")
        if isinstance(quality, bool) or not isinstance(quality, (int, float)) or not 0 <= quality <= 100:
            _logger.warning("invalid quality_percent: %r", quality)
            quality = defaults.quality_percent

        try:
            output_format = OutputFormat.parse(self.get("output_format"))
        except ValueError:
            _logger.warning("invalid output_format: %r", self.get("output_format"))
            output_format = defaults.output_format

        max_file_size = self.get("max_file_size")
        if isinstance(max_file_size, bool) or not isinstance(max_file_size, (int, float)) or max_file_size < 0:
            _logger.warning("invalid max_file_size: %r", max_file_size)
            max_file_size = defaults.max_file_size

        checksums_enabled = self.get("checksums_enabled")
        if not isinstance(checksums_enabled, bool):
            _logger.warning("invalid checksums_enabled: %r", checksums_enabled)
            checksums_enabled = defaults.checksums_enabled

        return ConverterConfig(
            max_file_size=int(max_file_size),
            max_dimension=self._positive_int("max_dimension", self.get("max_dimension"), defaults.max_dimension),
            supported_sniff_formats=frozenset(formats) or defaults.supported_sniff_formats,
            rate_limit_max_admissions=self._positive_int(
                "rate_limit.max_admissions", rate.get("max_admissions", 20), defaults.rate_limit_max_admissions
            ),
            rate_limit_window_ms=self._positive_int(
                "rate_limit.window_ms", rate.get("window_ms", 60_000), defaults.rate_limit_window_ms
            ),
            resize_catalog=tuple(catalog),
            quality_percent=int(quality),
            output_format=output_format,
            checksums_enabled=checksums_enabled,
        )

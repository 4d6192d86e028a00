"""Exception types raised inside the conversion core.

None of these are process-fatal. The orchestrator catches them at the file
boundary and turns them into skip outcomes or notices.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from image_converter.image_engine.guards import GuardReason


class ConverterError(Exception):
    """Base class for every error raised by the converter core."""


class ValidationError(ConverterError):
    """A guard rejected the input file."""

    def __init__(self, reason: GuardReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class DecodeEncodeError(ConverterError):
    """Decoding the source or encoding the output failed."""


class RateLimitExceeded(ConverterError):
    def __init__(self, max_admissions: int, window_seconds: float) -> None:
        super().__init__(
            f"Rate limit reached: at most {max_admissions} conversions per {window_seconds:g}s."
        )
        self.max_admissions = max_admissions
        self.window_seconds = window_seconds


class IntegrityUnavailable(ConverterError):
    """The host cannot compute a checksum for the output."""


class HandleReleasedError(ConverterError, KeyError):
    """A managed handle was used after release, or was never registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "handle not live"

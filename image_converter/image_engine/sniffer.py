"""Byte-signature sniffing of source images.

The declared MIME type and the file name of an input are never trusted; only
the leading bytes decide what a file is.
"""

from __future__ import annotations

from enum import Enum

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
SNIFF_LENGTH = 12


class SniffedFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    UNKNOWN = "unknown"

    @property
    def mime_type(self) -> str | None:
        return _MIME_TYPES.get(self)


_MIME_TYPES = {
    SniffedFormat.PNG: "image/png",
    SniffedFormat.JPEG: "image/jpeg",
}


def sniff(data: bytes | bytearray | memoryview | None) -> SniffedFormat:
    """Return the true format of `data` from its first 12 bytes.

    Short, empty or unreadable input is reported as UNKNOWN rather than raising.
    """
    if data is None:
        return SniffedFormat.UNKNOWN
    try:
        head = bytes(data[:SNIFF_LENGTH])
    except (TypeError, ValueError):
        return SniffedFormat.UNKNOWN

    if head.startswith(PNG_SIGNATURE):
        return SniffedFormat.PNG
    if head.startswith(JPEG_SIGNATURE):
        return SniffedFormat.JPEG
    return SniffedFormat.UNKNOWN

import math

import pytest

from image_converter import naming
from image_converter.image_engine.resize import ResizeSpec
from image_converter.models import OutputFormat


def test_format_bytes():
    assert naming.format_bytes(0) == "0 B"
    assert naming.format_bytes(1023) == "1023 B"
    assert naming.format_bytes(1024) == "1.0 KB"
    assert naming.format_bytes(1536) == "1.5 KB"
    assert naming.format_bytes(1048576) == "1.0 MB"
    assert naming.format_bytes(10485760) == "10 MB"
    assert naming.format_bytes(50 * 1024 * 1024) == "50 MB"
    assert naming.format_bytes(1073741824) == "1.0 GB"
    # GB is the largest unit
    assert naming.format_bytes(2048 * 1073741824) == "2048 GB"


def test_format_bytes_edge_cases():
    assert naming.format_bytes(math.nan) == "0 B"
    assert naming.format_bytes(math.inf) == "0 B"
    with pytest.raises(ValueError):
        naming.format_bytes(-1)


def test_file_name_data_removes_extension():
    data = naming.file_name_data("photo.jpg")
    assert data.display_name == "photo"
    assert data.download_name == "photo"


def test_file_name_data_sanitizes():
    data = naming.file_name_data("My Photo!!.png")
    assert data.display_name == "My Photo!!"
    assert data.download_name == "my-photo"


def test_file_name_data_fallbacks():
    for name in ("", None, "   .png", "!!!.png"):
        data = naming.file_name_data(name)
        assert data.download_name == "converted-image"
    assert naming.file_name_data("").display_name == "converted-image"


def test_file_name_data_caps_length():
    data = naming.file_name_data("a" * 150 + ".jpg")
    assert len(data.display_name) == 120
    assert len(data.download_name) == 120


def test_download_file_name_suffixes():
    assert naming.download_file_name("sample", OutputFormat.WEBP, 90, ResizeSpec.ORIGINAL) == "sample-q90.webp"
    assert naming.download_file_name("sample", OutputFormat.JPEG, 50, ResizeSpec(512)) == "sample-q50-512px.jpg"
    # Lossless targets never carry a quality suffix
    assert naming.download_file_name("sample", OutputFormat.PNG, 90, ResizeSpec(64)) == "sample-64px.png"
    assert naming.download_file_name("sample", OutputFormat.PNG, None, ResizeSpec.ORIGINAL) == "sample.png"


def test_labels():
    assert naming.source_descriptor(1536, "image/png", 800, 600) == "1.5 KB • image/png • 800 × 600"
    info = naming.converted_info(2048, "image/webp", 512, 384, 90, ResizeSpec(512))
    assert info == "2.0 KB • image/webp • 512 × 384 • Quality 90% • 512px"
    assert naming.converted_info(10, "image/png", 5, 5, None, ResizeSpec.ORIGINAL) == "10 B • image/png • 5 × 5"

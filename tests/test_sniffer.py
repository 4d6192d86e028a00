from image_converter.image_engine.sniffer import SniffedFormat, sniff

PNG_BYTES = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A, 0, 0, 0, 13])
JPEG_BYTES = bytes([0xFF, 0xD8, 0xFF, 0xE0])


def test_detects_png_signature():
    assert sniff(PNG_BYTES) is SniffedFormat.PNG
    assert SniffedFormat.PNG.mime_type == "image/png"


def test_detects_jpeg_signature():
    assert sniff(JPEG_BYTES) is SniffedFormat.JPEG
    assert sniff(JPEG_BYTES[:3]) is SniffedFormat.JPEG
    assert SniffedFormat.JPEG.mime_type == "image/jpeg"


def test_unknown_for_other_content():
    assert sniff(b"\x00\x00\x00") is SniffedFormat.UNKNOWN
    assert sniff(b"GIF89a......") is SniffedFormat.UNKNOWN
    assert sniff(b"RIFF\x00\x00\x00\x00WEBP") is SniffedFormat.UNKNOWN
    assert SniffedFormat.UNKNOWN.mime_type is None


def test_short_or_missing_data_is_unknown():
    assert sniff(None) is SniffedFormat.UNKNOWN
    assert sniff(b"") is SniffedFormat.UNKNOWN
    # Truncated PNG signature
    assert sniff(PNG_BYTES[:7]) is SniffedFormat.UNKNOWN
    assert sniff(b"\xff\xd8") is SniffedFormat.UNKNOWN


def test_never_raises_for_odd_inputs():
    assert sniff("not bytes") is SniffedFormat.UNKNOWN  # type: ignore[arg-type]
    assert sniff(12345) is SniffedFormat.UNKNOWN  # type: ignore[arg-type]


def test_accepts_bytearray_and_memoryview():
    assert sniff(bytearray(PNG_BYTES)) is SniffedFormat.PNG
    assert sniff(memoryview(JPEG_BYTES)) is SniffedFormat.JPEG


def test_spoofed_name_does_not_matter():
    # A text payload claiming to be a PNG by name/MIME is still unknown
    from image_converter.models import InputFile

    f = InputFile.from_bytes("photo.png", b"hello world!", declared_type="image/png")
    assert sniff(f.data) is SniffedFormat.UNKNOWN

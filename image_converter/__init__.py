"""Image Converter - guarded PNG/JPEG re-encoding with background checksums.

Usage:
    from image_converter import ConversionOrchestrator, InputFile, RequestTemplate

    orchestrator = ConversionOrchestrator()
    orchestrator.notice.connect(print)
    report = orchestrator.convert_batch([InputFile.from_path("photo.png")], RequestTemplate(quality_percent=80))
    for result in report.converted:
        result.checksum.status_changed.connect(lambda _s, r=result: print(r.checksum.label))
"""

from image_converter.models import InputFile, OutputFormat, RequestTemplate
from image_converter.ops.conversion import ConversionOrchestrator
from image_converter.settings_manager import ConverterConfig, SettingsManager

__all__ = [
    "ConversionOrchestrator",
    "ConverterConfig",
    "InputFile",
    "OutputFormat",
    "RequestTemplate",
    "SettingsManager",
]

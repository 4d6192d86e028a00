"""Batch conversion: guard, resize, encode, register, checksum.

Files in a batch are processed strictly one after another. A file that fails
validation, decoding or encoding is skipped and the batch continues; the only
thing that stops a batch early is the rate limiter. Checksums are handed off to
the integrity service and never awaited here.
"""

from __future__ import annotations

from collections.abc import Iterable

from PySide6.QtCore import QObject, Signal

from image_converter import naming
from image_converter.errors import DecodeEncodeError, RateLimitExceeded, ValidationError
from image_converter.image_engine.checksum_worker import ChecksumRecord, IntegrityService
from image_converter.image_engine.codec import Codec, PyvipsCodec
from image_converter.image_engine.guards import evaluate, evaluate_source
from image_converter.image_engine.handles import HandleRegistry
from image_converter.image_engine.rate_limiter import SlidingWindowRateLimiter
from image_converter.image_engine.resize import ResizeSpec, resize_dimensions
from image_converter.image_engine.sniffer import SniffedFormat, sniff
from image_converter.logger import get_logger
from image_converter.models import (
    BatchReport,
    ConversionRequest,
    ConversionResult,
    Converted,
    InputFile,
    OutputFormat,
    RequestTemplate,
    Skipped,
)
from image_converter.settings_manager import ConverterConfig

_logger = get_logger("conversion")

FALLBACK_FORMAT = OutputFormat.PNG


class ConversionOrchestrator(QObject):
    """Runs conversion batches and keeps the session's inputs and results.

    Successfully converted inputs are retained (deduplicated by name, size and
    mtime) so `regenerate()` can re-run them with new settings until `clear()`.
    """

    notice = Signal(str)
    result_ready = Signal(object)  # ConversionResult

    def __init__(
        self,
        config: ConverterConfig | None = None,
        *,
        codec: Codec | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        handles: HandleRegistry | None = None,
        integrity: IntegrityService | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.config = config or ConverterConfig()
        self.codec: Codec = codec if codec is not None else PyvipsCodec()
        self.rate_limiter = rate_limiter if rate_limiter is not None else self.config.make_rate_limiter()
        self.handles = handles if handles is not None else HandleRegistry(self)
        self.integrity = (
            integrity if integrity is not None else IntegrityService(self, enabled=self.config.checksums_enabled)
        )
        self._limits = self.config.guard_limits()
        self._stored: list[InputFile] = []
        self._results: list[ConversionResult] = []

    @property
    def stored_files(self) -> list[InputFile]:
        return list(self._stored)

    @property
    def results(self) -> list[ConversionResult]:
        return list(self._results)

    @property
    def can_regenerate(self) -> bool:
        return bool(self._stored)

    def convert_batch(self, files: Iterable[InputFile], template: RequestTemplate | None = None) -> BatchReport:
        template = template or self.config.default_template()
        return self._run(list(files), template, regenerating=False)

    def regenerate(self, template: RequestTemplate | None = None) -> BatchReport:
        """Re-run every retained input with new format/quality/resize settings."""
        template = template or self.config.default_template()
        if not self._stored:
            return BatchReport()
        report = self._run(list(self._stored), template, regenerating=True)
        count = len(report.converted)
        if count:
            quality = template.quality_percent if template.output_format.lossy else None
            at = f" at {quality}% quality" if quality is not None else f" as {template.output_format.label}"
            self._announce(report, f"Regenerated {count} image{'' if count == 1 else 's'}{at}.")
        return report

    def clear(self) -> int:
        """Forget retained inputs and results and release every output handle."""
        self._stored.clear()
        self._results.clear()
        released = self.handles.release_all()
        _logger.info("cleared session: %d handle(s) released", released)
        self.notice.emit("Cleared converted images.")
        return released

    def _announce(self, report: BatchReport, message: str) -> None:
        report.notices.append(message)
        self.notice.emit(message)

    def _resolve_format(self, report: BatchReport, requested: OutputFormat) -> OutputFormat:
        if self.codec.supports(requested):
            return requested
        _logger.warning("%s encoding unsupported; falling back to %s", requested.label, FALLBACK_FORMAT.label)
        self._announce(report, f"{requested.label} is not supported here; converting to {FALLBACK_FORMAT.label}.")
        return FALLBACK_FORMAT

    def _resolve_resize(self, report: BatchReport, requested: ResizeSpec) -> ResizeSpec:
        if requested.is_original or requested in self.config.resize_catalog:
            return requested
        _logger.warning("resize %s not in catalog; using original size", requested.label)
        self._announce(report, f"{requested.label} is not an available size; keeping the original size.")
        return ResizeSpec.ORIGINAL

    def _admit(self) -> None:
        if not self.rate_limiter.has_capacity():
            raise RateLimitExceeded(self.rate_limiter.max_admissions, self.rate_limiter.window_seconds)

    def _run(self, files: list[InputFile], template: RequestTemplate, *, regenerating: bool) -> BatchReport:
        report = BatchReport()
        output_format = self._resolve_format(report, template.output_format)
        resize = self._resolve_resize(report, template.resize)
        if output_format is not template.output_format or resize is not template.resize:
            template = RequestTemplate(output_format, template.quality_percent, resize)

        during = " during regenerate" if regenerating else ""
        _logger.info(
            "batch start: files=%d format=%s quality=%d resize=%s regenerate=%s",
            len(files),
            template.output_format.value,
            template.quality_percent,
            template.resize.label,
            regenerating,
        )

        for index, file in enumerate(files):
            try:
                self._admit()
                sniffed, dimensions = self._validate(file)
                # Capacity was checked above; a concurrent batch may have taken the slot since
                if not self.rate_limiter.reserve():
                    raise RateLimitExceeded(self.rate_limiter.max_admissions, self.rate_limiter.window_seconds)
                result = self._convert(template.for_file(file), sniffed, dimensions)
            except RateLimitExceeded as e:
                report.rate_limited = True
                report.unprocessed = files[index:]
                _logger.warning("batch halted by rate limit: %d file(s) unprocessed", len(report.unprocessed))
                self._announce(report, f"{e} Remaining files were not processed; try again shortly.")
                break
            except ValidationError as e:
                _logger.info("skip %s: %s", file.name, e.message)
                report.outcomes.append(Skipped(file.name, e.reason, e.message))
                self._announce(report, f"{file.name} skipped{during} ({e.message}).")
                continue
            except Exception as e:
                if isinstance(e, DecodeEncodeError):
                    _logger.warning("conversion failed for %s: %s", file.name, e)
                else:
                    _logger.exception("unexpected failure converting %s", file.name)
                report.outcomes.append(Skipped(file.name, None, str(e)))
                if regenerating:
                    self._announce(report, f"Failed to regenerate {file.name}.")
                else:
                    self._announce(report, f"Something went wrong converting {file.name}.")
                continue

            report.outcomes.append(Converted(result))
            self._results.append(result)
            if not regenerating:
                self._retain(file)
            self.result_ready.emit(result)

        _logger.info(
            "batch done: converted=%d skipped=%d unprocessed=%d",
            len(report.converted),
            len(report.skipped),
            len(report.unprocessed),
        )
        return report

    def _validate(self, file: InputFile) -> tuple[SniffedFormat, tuple[int, int]]:
        sniffed = sniff(file.data)
        verdict = evaluate_source(file.size, sniffed, self._limits)
        if not verdict:
            raise ValidationError(verdict.reason, verdict.message)  # type: ignore[arg-type]

        dimensions = self.codec.probe_dimensions(file.data)
        verdict = evaluate(file.size, sniffed, dimensions, self._limits)
        if not verdict:
            raise ValidationError(verdict.reason, verdict.message)  # type: ignore[arg-type]
        return sniffed, dimensions

    def _convert(
        self, request: ConversionRequest, sniffed: SniffedFormat, dimensions: tuple[int, int]
    ) -> ConversionResult:
        file = request.file
        src_w, src_h = dimensions
        out_w, out_h = resize_dimensions(src_w, src_h, request.resize_spec)
        quality = request.effective_quality

        output = self.codec.render(file.data, out_w, out_h, request.target_format, quality)

        mime_type = request.target_format.mime_type
        names = naming.file_name_data(file.name)
        handle = self.handles.create(output, mime_type)
        record = ChecksumRecord()
        result = ConversionResult(
            output_bytes=output,
            output_width=out_w,
            output_height=out_h,
            mime_type=mime_type,
            source_descriptor=naming.source_descriptor(file.size, sniffed.mime_type, src_w, src_h),
            display_name=names.display_name,
            download_name=naming.download_file_name(
                names.download_name, request.target_format, quality, request.resize_spec
            ),
            handle=handle,
            checksum=record,
            output_format=request.target_format,
            quality_percent=quality,
            resize=request.resize_spec,
        )
        _logger.debug("converted %s -> %s (%s)", file.name, result.download_name, naming.format_bytes(result.size))
        self.integrity.compute_digest(output, record)
        return result

    def _retain(self, file: InputFile) -> None:
        if any(stored.identity == file.identity for stored in self._stored):
            return
        self._stored.append(file)

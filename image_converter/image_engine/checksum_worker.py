"""Background SHA-256 checksums for conversion outputs.

Each digest runs in its own short-lived QThread so the caller gets its
conversion result immediately. The worker replies with exactly one message
(`result` or `error`), the associated ChecksumRecord transitions once, and the
thread is discarded. Records are never retried.
"""

from __future__ import annotations

import hashlib
from enum import Enum

from PySide6.QtCore import QCoreApplication, QObject, Qt, QThread, Signal, Slot

from image_converter.errors import IntegrityUnavailable
from image_converter.logger import get_logger

_logger = get_logger("checksum")

DIGEST_ALGORITHM = "sha256"


def _application_running() -> bool:
    return QCoreApplication.instance() is not None


class ChecksumStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class ChecksumRecord(QObject):
    """Checksum state of one conversion result: pending, then ready or unavailable."""

    status_changed = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._status = ChecksumStatus.PENDING
        self._digest_hex: str | None = None
        self._error: str | None = None

    @property
    def status(self) -> ChecksumStatus:
        return self._status

    @property
    def digest_hex(self) -> str | None:
        return self._digest_hex

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_settled(self) -> bool:
        return self._status is not ChecksumStatus.PENDING

    @property
    def label(self) -> str:
        if self._status is ChecksumStatus.READY:
            return f"SHA-256: {self._digest_hex}"
        if self._status is ChecksumStatus.UNAVAILABLE:
            return "SHA-256: unavailable"
        return "SHA-256: calculating…"

    @Slot(str)
    def mark_ready(self, digest_hex: str) -> None:
        if self.is_settled:
            _logger.debug("checksum already %s; ignoring ready", self._status.value)
            return
        self._digest_hex = digest_hex
        self._status = ChecksumStatus.READY
        self.status_changed.emit(self._status.value)

    @Slot(str)
    def mark_unavailable(self, message: str = "") -> None:
        if self.is_settled:
            _logger.debug("checksum already %s; ignoring unavailable", self._status.value)
            return
        self._error = message or None
        self._status = ChecksumStatus.UNAVAILABLE
        self.status_changed.emit(self._status.value)


class ChecksumWorker(QObject):
    """One-shot worker: hashes the submitted bytes once and replies once."""

    result = Signal(str)
    error = Signal(str)
    finished = Signal()

    def __init__(self, data: bytes) -> None:
        super().__init__()
        self._data = data

    @Slot()
    def run(self) -> None:
        try:
            digest = hashlib.new(DIGEST_ALGORITHM, self._data).hexdigest()
        except Exception as e:
            _logger.warning("checksum failed: %s", e)
            self.error.emit(str(e))
        else:
            self.result.emit(digest)
        finally:
            self._data = b""
            self.finished.emit()


class IntegrityService(QObject):
    """Starts a fresh checksum worker thread per output."""

    def __init__(self, parent: QObject | None = None, *, enabled: bool = True) -> None:
        super().__init__(parent)
        self._enabled = enabled
        self._jobs: list[tuple[QThread, ChecksumWorker]] = []

    def _ensure_available(self) -> None:
        if not self._enabled:
            raise IntegrityUnavailable("checksums disabled")
        if DIGEST_ALGORITHM not in hashlib.algorithms_available:
            raise IntegrityUnavailable(f"{DIGEST_ALGORITHM} not available")
        # Worker replies are delivered through the application's event loop
        if not _application_running():
            raise IntegrityUnavailable("no Qt application to deliver results")

    @property
    def available(self) -> bool:
        try:
            self._ensure_available()
        except IntegrityUnavailable:
            return False
        return True

    @property
    def pending_count(self) -> int:
        return sum(1 for thread, _worker in self._jobs if not thread.isFinished())

    def compute_digest(self, data: bytes, record: ChecksumRecord | None = None) -> ChecksumRecord:
        """Return a pending record that later settles with the digest of `data`."""
        record = record if record is not None else ChecksumRecord()
        try:
            self._ensure_available()
        except IntegrityUnavailable as e:
            _logger.info("checksum unavailable: %s", e)
            record.mark_unavailable(str(e))
            return record

        worker = ChecksumWorker(bytes(data))
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.result.connect(record.mark_ready)
        worker.error.connect(record.mark_unavailable)
        # quit() is thread-safe; the thread stops even if no event loop is spinning
        worker.finished.connect(thread.quit, Qt.ConnectionType.DirectConnection)
        thread.finished.connect(self._reap)

        self._jobs.append((thread, worker))
        thread.start()
        _logger.debug("checksum started: %d bytes (jobs=%d)", len(data), len(self._jobs))
        return record

    @Slot()
    def _reap(self) -> None:
        sender = self.sender()
        done = [job for job in self._jobs if job[0] is sender or job[0].isFinished()]
        for job in done:
            job[0].wait()
            self._jobs.remove(job)
        if done:
            _logger.debug("checksum threads reaped: %d (remaining=%d)", len(done), len(self._jobs))

    def shutdown(self, timeout_ms: int = 1000) -> None:
        jobs, self._jobs = self._jobs, []
        for thread, _worker in jobs:
            thread.quit()
            if not thread.wait(timeout_ms):
                _logger.warning("checksum thread did not stop within %d ms", timeout_ms)

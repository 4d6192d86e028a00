import hashlib

import pytest

PySide6 = pytest.importorskip("PySide6")  # noqa: F401
pytest.importorskip("pytestqt")

from image_converter.image_engine import checksum_worker
from image_converter.image_engine.checksum_worker import (
    ChecksumRecord,
    ChecksumStatus,
    ChecksumWorker,
    IntegrityService,
)


def test_record_transitions_exactly_once():
    record = ChecksumRecord()
    seen: list[str] = []
    record.status_changed.connect(seen.append)
    assert record.status is ChecksumStatus.PENDING
    assert record.label == "SHA-256: calculating…"

    record.mark_ready("abc123")
    record.mark_unavailable("late error")
    record.mark_ready("other")

    assert record.status is ChecksumStatus.READY
    assert record.digest_hex == "abc123"
    assert record.label == "SHA-256: abc123"
    assert seen == ["ready"]


def test_worker_replies_once_with_result():
    worker = ChecksumWorker(b"hello")
    results: list[str] = []
    errors: list[str] = []
    finished: list[bool] = []
    worker.result.connect(results.append)
    worker.error.connect(errors.append)
    worker.finished.connect(lambda: finished.append(True))

    worker.run()

    assert results == [hashlib.sha256(b"hello").hexdigest()]
    assert errors == []
    assert finished == [True]


def test_worker_replies_with_error(monkeypatch):
    monkeypatch.setattr(checksum_worker, "DIGEST_ALGORITHM", "no-such-digest")
    worker = ChecksumWorker(b"hello")
    results: list[str] = []
    errors: list[str] = []
    worker.result.connect(results.append)
    worker.error.connect(errors.append)

    worker.run()

    assert results == []
    assert len(errors) == 1


def test_service_computes_digest_in_background(qtbot):
    service = IntegrityService()
    try:
        data = b"\x00\x01" * 5000
        record = service.compute_digest(data)
        assert record.status is ChecksumStatus.PENDING

        qtbot.waitUntil(lambda: record.is_settled, timeout=5000)
        assert record.status is ChecksumStatus.READY
        assert record.digest_hex == hashlib.sha256(data).hexdigest()

        qtbot.waitUntil(lambda: service.pending_count == 0, timeout=5000)
    finally:
        service.shutdown()


def test_independent_digests_all_settle(qtbot):
    service = IntegrityService()
    try:
        payloads = [bytes([i]) * (1000 * (i + 1)) for i in range(5)]
        records = [service.compute_digest(p) for p in payloads]
        qtbot.waitUntil(lambda: all(r.is_settled for r in records), timeout=5000)
        for payload, record in zip(payloads, records):
            assert record.digest_hex == hashlib.sha256(payload).hexdigest()
    finally:
        service.shutdown()


def test_disabled_service_marks_unavailable_immediately():
    service = IntegrityService(enabled=False)
    record = service.compute_digest(b"data")
    assert record.status is ChecksumStatus.UNAVAILABLE
    assert record.label == "SHA-256: unavailable"
    assert service.pending_count == 0
    assert service.available is False


def test_missing_event_loop_marks_unavailable(monkeypatch):
    monkeypatch.setattr(checksum_worker, "_application_running", lambda: False)
    service = IntegrityService()
    record = service.compute_digest(b"data")
    assert record.status is ChecksumStatus.UNAVAILABLE
    assert record.error


def test_missing_digest_primitive_marks_unavailable(monkeypatch):
    monkeypatch.setattr(checksum_worker.hashlib, "algorithms_available", set())
    record = IntegrityService().compute_digest(b"data")
    assert record.status is ChecksumStatus.UNAVAILABLE

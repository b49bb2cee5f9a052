"""
Tests for the background snapshot worker.
"""

import threading
from unittest.mock import MagicMock

from src.schemas.hardware import InventoryCategory, InventoryLine, InventorySnapshot
from src.services.hardware.base import InventoryUnavailableError
from src.services.snapshot_worker import SnapshotResult, SnapshotWorker


def _service_returning(snapshot=None, error=None):
    service = MagicMock()
    if error is not None:
        service.build_snapshot.side_effect = error
    else:
        service.build_snapshot.return_value = snapshot
    return lambda: service


def test_result_is_delivered():
    snapshot = InventorySnapshot(lines=[InventoryLine(InventoryCategory.CPU, 1, "CPU: AMD Ryzen 7 5800X")])
    worker = SnapshotWorker(service_factory=_service_returning(snapshot))

    assert worker.start() is True
    result = worker.get_result(timeout=5)

    assert result.ok
    assert result.snapshot.texts() == ["CPU: AMD Ryzen 7 5800X"]
    assert result.error is None


def test_unavailable_inventory_is_reported():
    error = InventoryUnavailableError("inventory", "No management-data source available")
    worker = SnapshotWorker(service_factory=_service_returning(error=error))
    worker.start()

    result = worker.get_result(timeout=5)
    assert not result.ok
    assert result.error is error


def test_unexpected_error_is_reported():
    worker = SnapshotWorker(service_factory=_service_returning(error=RuntimeError("boom")))
    worker.start()

    result = worker.get_result(timeout=5)
    assert isinstance(result.error, RuntimeError)


def test_no_result_before_timeout():
    assert SnapshotWorker(service_factory=_service_returning(InventorySnapshot())).get_result(timeout=0.01) is None


def test_single_run_in_flight():
    release = threading.Event()
    service = MagicMock()

    def slow_snapshot():
        release.wait(5)
        return InventorySnapshot()

    service.build_snapshot.side_effect = slow_snapshot
    worker = SnapshotWorker(service_factory=lambda: service)

    assert worker.start() is True
    assert worker.running
    assert worker.start() is False

    release.set()
    assert worker.get_result(timeout=5).ok
    assert service.build_snapshot.call_count == 1


def test_result_defaults():
    assert not SnapshotResult().ok

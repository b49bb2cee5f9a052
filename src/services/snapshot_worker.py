"""
Background snapshot worker.

Management queries can take seconds (WMI cold start, PowerShell spawn), so
callers that must stay responsive run build_snapshot on a worker thread and
poll for the result. There is no mid-query cancellation; a caller that no
longer wants the result simply stops polling.
"""

import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from src.schemas.hardware import InventorySnapshot
from src.services.hardware.base import InventoryError
from src.services.inventory_service import InventoryService
from src.utils.logger import log


@dataclass
class SnapshotResult:
    snapshot: Optional[InventorySnapshot] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


class SnapshotWorker:
    """
    Runs one snapshot per start() on a daemon thread and hands it back
    through a single-producer/single-consumer queue.

    Usage:
        worker = SnapshotWorker()
        worker.start()
        result = worker.get_result(timeout=30)
    """

    def __init__(self, service_factory: Callable[[], InventoryService] = InventoryService):
        self._service_factory = service_factory
        self._results: "queue.Queue[SnapshotResult]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start a snapshot; returns False if one is already in flight."""
        if self.running:
            log.debug("Snapshot already in progress")
            return False
        self._thread = threading.Thread(target=self._run, name="inventory-snapshot", daemon=True)
        self._thread.start()
        return True

    def _run(self):
        try:
            snapshot = self._service_factory().build_snapshot()
            self._results.put(SnapshotResult(snapshot=snapshot))
        except InventoryError as e:
            log.error(f"Inventory unavailable: {e}")
            self._results.put(SnapshotResult(error=e))
        except Exception as e:
            log.exception(f"Snapshot worker crashed: {e}")
            self._results.put(SnapshotResult(error=e))

    def get_result(self, timeout: Optional[float] = None) -> Optional[SnapshotResult]:
        """Block up to ``timeout`` seconds for the next result; None if not ready."""
        try:
            return self._results.get(timeout=timeout)
        except queue.Empty:
            return None

"""
Inventory summary builder.

Each category resolves through an ordered fallback chain of
(selector, source) attempts; the first attempt that yields records wins.
Categories degrade independently to an "unknown" line. The only fatal
condition is having no reachable management source at all.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from src.config.constants import (
    UNKNOWN_CPU,
    UNKNOWN_DISK,
    UNKNOWN_GPU,
    UNKNOWN_MEMORY,
    UNKNOWN_NETWORK,
    UNKNOWN_OS,
    UNKNOWN_OS_VERSION,
    UNKNOWN_VALUE,
    NO_MONITOR_DETECTED,
)
from src.config.manager import config_manager
from src.schemas.hardware import (
    InventoryCategory,
    InventoryLine,
    InventorySnapshot,
    RawRecord,
    Selector,
)
from src.services.hardware import selectors
from src.services.hardware.base import InventoryUnavailableError, SourceUnavailableError
from src.services.hardware.disk import format_disk_line
from src.services.hardware.edid import EdidResolver, controller_resolutions, format_monitor_lines
from src.services.hardware.gpu import format_gpu_line, normalize_gpu_name
from src.services.hardware.network import format_adapter_line
from src.services.hardware.os_version import resolve_version_label
from src.services.hardware.ram import format_memory_lines
from src.services.hardware.sources import ManagementSource, create_default_sources
from src.services.hardware.tables import HardwareTables, get_tables
from src.services.system_service import SystemService
from src.utils.logger import log

# (index, text) pairs plus whether the category fell back to unknown
Rendered = Tuple[List[Tuple[int, str]], bool]


def _units(texts: Sequence[str]) -> List[Tuple[int, str]]:
    """One line per physical unit, numbered from 1 in source order."""
    return list(enumerate(texts, start=1))


def _summary(*texts: str) -> List[Tuple[int, str]]:
    """Lines that describe no single unit (headers, totals, unknowns) carry index 0."""
    return [(0, text) for text in texts]


class _QueryRun:
    """
    Per-snapshot query state: whether any source answered, and the outcome of
    every (source, selector) attempt. Failures are remembered too, so a table
    shared by two categories is never retried within one snapshot.
    """

    def __init__(self, sources: Sequence[ManagementSource]):
        self.sources = sources
        self.reached = False
        # keyed on the source object; names are not unique
        self._cache: Dict[Tuple[int, str, str], Optional[List[RawRecord]]] = {}

    def attempt(self, source: ManagementSource, selector: Selector) -> Optional[List[RawRecord]]:
        key = (id(source), selector.namespace, selector.wql)
        if key in self._cache:
            return self._cache[key]
        try:
            records = source.query(selector)
        except SourceUnavailableError as e:
            log.warning(f"{source.name} could not answer {selector.table}: {e}")
            records = None
        else:
            self.reached = True
        self._cache[key] = records
        return records

    def first(self, *chain: Selector) -> List[RawRecord]:
        """Records from the first (selector, source) attempt that yields any."""
        for selector in chain:
            for source in self.sources:
                records = self.attempt(source, selector)
                if records:
                    return records
        return []


class InventoryService:
    """
    Builds an InventorySnapshot from management sources and host tools.

    Usage:
        service = InventoryService()
        print(service.build_snapshot().render())
    """

    def __init__(self, sources: Optional[Sequence[ManagementSource]] = None,
                 tables: Optional[HardwareTables] = None,
                 use_nvidia_smi: Optional[bool] = None,
                 use_psutil_fallback: Optional[bool] = None):
        self._sources = list(sources) if sources is not None else None
        self._tables = tables
        self.use_nvidia_smi = (config_manager.get("use_nvidia_smi", True)
                               if use_nvidia_smi is None else use_nvidia_smi)
        self.use_psutil_fallback = (config_manager.get("use_psutil_fallback", True)
                                    if use_psutil_fallback is None else use_psutil_fallback)
        self.command_timeout = config_manager.get("command_timeout_secs", 15)
        self.edid_resolver = EdidResolver()

    @property
    def tables(self) -> HardwareTables:
        return self._tables or get_tables()

    def _resolve_sources(self) -> List[ManagementSource]:
        if self._sources is not None:
            return self._sources
        return create_default_sources(config_manager.get("preferred_source", "auto"),
                                      timeout=self.command_timeout)

    def build_snapshot(self) -> InventorySnapshot:
        """
        Query every category and render the summary.

        Raises:
            InventoryUnavailableError: no management source could be reached
        """
        sources = self._resolve_sources()
        if not sources:
            raise InventoryUnavailableError("inventory", "No management-data source available")

        run = _QueryRun(sources)
        snapshot = InventorySnapshot()
        renderers: List[Tuple[InventoryCategory, Callable[[_QueryRun], Rendered]]] = [
            (InventoryCategory.OS, self._os_lines),
            (InventoryCategory.MANUFACTURER, self._manufacturer_lines),
            (InventoryCategory.MOTHERBOARD, self._motherboard_lines),
            (InventoryCategory.CPU, self._cpu_lines),
            (InventoryCategory.MEMORY, self._memory_lines),
            (InventoryCategory.DISK, self._disk_lines),
            (InventoryCategory.GPU, self._gpu_lines),
            (InventoryCategory.NETWORK, self._network_lines),
            (InventoryCategory.MONITOR, self._monitor_lines),
        ]
        for category, render in renderers:
            numbered, degraded = render(run)
            snapshot.lines.extend(
                InventoryLine(category, index, text) for index, text in numbered
            )
            if degraded:
                snapshot.degraded.append(category)

        if not run.reached:
            raise InventoryUnavailableError(
                "inventory", "No management-data source answered",
                ", ".join(source.name for source in sources),
            )

        if snapshot.degraded:
            log.info(f"Inventory built with degraded categories: "
                     f"{', '.join(c.value for c in snapshot.degraded)}")
        else:
            log.info(f"Inventory built: {len(snapshot.lines)} lines")
        return snapshot

    # --- Per-category rendering: ((index, text) pairs, degraded) ---

    def _os_lines(self, run: _QueryRun) -> Rendered:
        records = run.first(selectors.OPERATING_SYSTEM)
        record = records[0] if records else RawRecord()
        caption = record.stripped_text("Caption") or UNKNOWN_OS
        version = record.stripped_text("Version") or UNKNOWN_OS_VERSION
        label = resolve_version_label(caption, version, self.tables.product_lines)
        lines = _summary(f"操作系统: {caption}", f"系统版本: {version}", f"版本标识: {label}")
        return lines, not records

    def _single_value(self, run: _QueryRun, selector: Selector, field_name: str,
                      prefix: str, unknown: str) -> Rendered:
        records = run.first(selector)
        value = records[0].stripped_text(field_name) if records else ""
        if not value:
            return _summary(f"{prefix}{unknown}"), True
        return _units([f"{prefix}{value}"]), False

    def _manufacturer_lines(self, run: _QueryRun) -> Rendered:
        return self._single_value(run, selectors.COMPUTER_SYSTEM, "Manufacturer", "制造商: ", UNKNOWN_VALUE)

    def _motherboard_lines(self, run: _QueryRun) -> Rendered:
        return self._single_value(run, selectors.BASEBOARD, "Product", "主板: ", UNKNOWN_VALUE)

    def _cpu_lines(self, run: _QueryRun) -> Rendered:
        return self._single_value(run, selectors.PROCESSOR, "Name", "CPU: ", UNKNOWN_CPU)

    def _memory_lines(self, run: _QueryRun) -> Rendered:
        lines = format_memory_lines(run.first(selectors.PHYSICAL_MEMORY), self.tables.memory)
        if lines:
            # the total line describes no single module
            return _summary(lines[0]) + _units(lines[1:]), False
        if self.use_psutil_fallback:
            total = SystemService.get_total_memory_gb()
            if total:
                log.debug("No memory modules reported, using psutil total")
                return _summary(f"总内存: {total} GB"), False
        return _summary(UNKNOWN_MEMORY), True

    def _disk_lines(self, run: _QueryRun) -> Rendered:
        disks = run.first(selectors.DISK_DRIVE)
        if disks:
            disks = self._merge_storage_details(run, disks)
        else:
            disks = run.first(selectors.PHYSICAL_DISK)
        if not disks:
            return _summary(UNKNOWN_DISK), True
        tables = self.tables.disk
        lines = [format_disk_line(index, disk, tables) for index, disk in enumerate(disks, start=1)]
        return _units(lines), False

    def _merge_storage_details(self, run: _QueryRun, disks: List[RawRecord]) -> List[RawRecord]:
        """
        Add BusType and a numeric MediaType from MSFT_PhysicalDisk, matched on
        DeviceId == Index. Win32_DiskDrive says "Fixed hard disk media" for
        SSDs and HDDs alike.
        """
        physical = run.first(selectors.PHYSICAL_DISK)
        if not physical:
            return disks

        by_device = {p.stripped_text("DeviceId"): p for p in physical if p.stripped_text("DeviceId")}
        known_codes = self.tables.disk.media_type_codes
        merged = []
        for disk in disks:
            index = disk.uint("Index")
            match = by_device.get(str(index)) if index is not None else None
            if match is None:
                merged.append(disk)
                continue
            fields = dict(disk)
            if "BusType" in match:
                fields["BusType"] = match["BusType"]
            code = match.uint("MediaType")
            if code in known_codes:
                fields["MediaType"] = match["MediaType"]
            merged.append(RawRecord(fields, source=disk.source))
        return merged

    def _gpu_lines(self, run: _QueryRun) -> Rendered:
        controllers = [
            c for c in run.first(selectors.VIDEO_CONTROLLER)
            if not selectors.is_basic_display_adapter(c.stripped_text("Name"))
        ]
        vendor_records = self._nvidia_records() if self.use_nvidia_smi else []
        if controllers and vendor_records:
            controllers = merge_vendor_memory(controllers, vendor_records)
        elif not controllers:
            controllers = vendor_records
        if not controllers:
            return _summary(UNKNOWN_GPU), True
        tables = self.tables.gpu
        lines = [format_gpu_line(index, c, tables) for index, c in enumerate(controllers, start=1)]
        return _units(lines), False

    def _nvidia_records(self) -> List[RawRecord]:
        try:
            return SystemService.get_nvidia_gpus(timeout=self.command_timeout)
        except SourceUnavailableError as e:
            log.debug(f"nvidia-smi unavailable: {e}")
            return []

    def _network_lines(self, run: _QueryRun) -> Rendered:
        adapters = run.first(selectors.NETWORK_ADAPTER)
        if not adapters and self.use_psutil_fallback:
            try:
                adapters = SystemService.get_network_links()
            except SourceUnavailableError as e:
                log.warning(f"psutil network fallback failed: {e}")
        if not adapters:
            return _summary(UNKNOWN_NETWORK), True
        tables = self.tables.network
        return _units([format_adapter_line(adapter, tables) for adapter in adapters]), False

    def _monitor_lines(self, run: _QueryRun) -> Rendered:
        resolutions = controller_resolutions(run.first(selectors.VIDEO_CONTROLLER))
        displays = self.edid_resolver.resolve(
            run.first(selectors.MONITOR_ID),
            run.first(selectors.MONITOR_PARAMS),
            resolutions,
            secondary=lambda: run.first(selectors.DESKTOP_MONITOR),
        )
        lines = format_monitor_lines(displays, resolutions)
        if lines == [NO_MONITOR_DETECTED]:
            return _summary(NO_MONITOR_DETECTED), True
        return _units(lines), False


def merge_vendor_memory(controllers: List[RawRecord], vendor_records: List[RawRecord]) -> List[RawRecord]:
    """
    Copy DedicatedMemory from vendor-tool records onto controllers whose
    names match, so the VRAM cross-check sees the vendor's figure.
    """
    merged = []
    remaining = list(vendor_records)
    for controller in controllers:
        name = normalize_gpu_name(controller.stripped_text("Name"))
        match = None
        for candidate in remaining:
            candidate_name = normalize_gpu_name(candidate.stripped_text("Name"))
            if name and candidate_name and (candidate_name in name or name in candidate_name):
                match = candidate
                break
        if match is None or "DedicatedMemory" not in match:
            merged.append(controller)
            continue
        remaining.remove(match)
        fields = dict(controller)
        fields["DedicatedMemory"] = match["DedicatedMemory"]
        merged.append(RawRecord(fields, source=controller.source))
    return merged

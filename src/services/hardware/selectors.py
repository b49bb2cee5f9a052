"""
Management-table selectors used by the inventory.

Each selector declares the kind of every field so sources can convert
provider-native values (COM variants, JSON numbers, strings) into RawValues
in one place.
"""

from src.config.constants import (
    BASIC_DISPLAY_ADAPTER,
    STORAGE_NAMESPACE,
    WMI_MONITOR_NAMESPACE,
    WMI_NAMESPACE,
)
from src.schemas.hardware import FieldKind, FieldSpec, Selector

TEXT = FieldKind.TEXT
U8 = FieldKind.UINT8
U16 = FieldKind.UINT16
U32 = FieldKind.UINT32
U64 = FieldKind.UINT64
BYTES = FieldKind.BYTES


def _fields(*specs):
    return tuple(FieldSpec(name, kind) for name, kind in specs)


OPERATING_SYSTEM = Selector(
    table="Win32_OperatingSystem",
    fields=_fields(("Caption", TEXT), ("Version", TEXT), ("BuildNumber", TEXT)),
    namespace=WMI_NAMESPACE,
)

COMPUTER_SYSTEM = Selector(
    table="Win32_ComputerSystem",
    fields=_fields(("Manufacturer", TEXT), ("Model", TEXT)),
    namespace=WMI_NAMESPACE,
)

BASEBOARD = Selector(
    table="Win32_BaseBoard",
    fields=_fields(("Manufacturer", TEXT), ("Product", TEXT)),
    namespace=WMI_NAMESPACE,
)

PROCESSOR = Selector(
    table="Win32_Processor",
    fields=_fields(("Name", TEXT)),
    namespace=WMI_NAMESPACE,
)

PHYSICAL_MEMORY = Selector(
    table="Win32_PhysicalMemory",
    fields=_fields(
        ("Manufacturer", TEXT),
        ("Capacity", U64),
        ("MemoryType", U16),
        ("SMBIOSMemoryType", U32),
        ("Speed", U32),
        ("ConfiguredClockSpeed", U32),
    ),
    namespace=WMI_NAMESPACE,
)

DISK_DRIVE = Selector(
    table="Win32_DiskDrive",
    fields=_fields(
        ("Index", U32),
        ("Manufacturer", TEXT),
        ("Model", TEXT),
        ("Size", U64),
        ("MediaType", TEXT),
    ),
    namespace=WMI_NAMESPACE,
)

# Storage provider, absent before Windows 8
PHYSICAL_DISK = Selector(
    table="MSFT_PhysicalDisk",
    fields=_fields(
        ("DeviceId", TEXT),
        ("FriendlyName", TEXT),
        ("Model", TEXT),
        ("Manufacturer", TEXT),
        ("Size", U64),
        ("MediaType", U16),
        ("BusType", U16),
    ),
    namespace=STORAGE_NAMESPACE,
)

VIDEO_CONTROLLER = Selector(
    table="Win32_VideoController",
    fields=_fields(
        ("Name", TEXT),
        ("AdapterCompatibility", TEXT),
        ("AdapterRAM", U32),
        ("CurrentHorizontalResolution", U32),
        ("CurrentVerticalResolution", U32),
        ("CurrentRefreshRate", U32),
    ),
    namespace=WMI_NAMESPACE,
)

NETWORK_ADAPTER = Selector(
    table="Win32_NetworkAdapter",
    fields=_fields(("Name", TEXT), ("Manufacturer", TEXT), ("Speed", U64)),
    namespace=WMI_NAMESPACE,
    where="PhysicalAdapter = TRUE",
)

MONITOR_ID = Selector(
    table="WmiMonitorID",
    fields=_fields(
        ("InstanceName", TEXT),
        ("ManufacturerName", BYTES),
        ("ProductCodeID", BYTES),
        ("SerialNumberID", BYTES),
        ("UserFriendlyName", BYTES),
        ("WeekOfManufacture", U8),
        ("YearOfManufacture", U16),
    ),
    namespace=WMI_MONITOR_NAMESPACE,
)

MONITOR_PARAMS = Selector(
    table="WmiMonitorBasicDisplayParams",
    fields=_fields(
        ("InstanceName", TEXT),
        ("MaxHorizontalImageSize", U8),
        ("MaxVerticalImageSize", U8),
    ),
    namespace=WMI_MONITOR_NAMESPACE,
)

DESKTOP_MONITOR = Selector(
    table="Win32_DesktopMonitor",
    fields=_fields(
        ("MonitorManufacturer", TEXT),
        ("Name", TEXT),
        ("ScreenWidth", U32),
        ("ScreenHeight", U32),
    ),
    namespace=WMI_NAMESPACE,
)

ALL_SELECTORS = (
    OPERATING_SYSTEM,
    COMPUTER_SYSTEM,
    BASEBOARD,
    PROCESSOR,
    PHYSICAL_MEMORY,
    DISK_DRIVE,
    PHYSICAL_DISK,
    VIDEO_CONTROLLER,
    NETWORK_ADAPTER,
    MONITOR_ID,
    MONITOR_PARAMS,
    DESKTOP_MONITOR,
)


def is_basic_display_adapter(name: str) -> bool:
    return name.strip().lower() == BASIC_DISPLAY_ADAPTER.lower()

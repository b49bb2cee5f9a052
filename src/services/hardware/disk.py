"""
Disk medium classification.

Windows does not report "SSD or HDD" reliably: Win32_DiskDrive says
"Fixed hard disk media" for nearly everything, and the storage provider's
MSFT_PhysicalDisk is missing on older systems. The medium is inferred from an
ordered list of signals:

1. An explicit medium/bus field that states the answer unambiguously
2. SSD keywords in the model string
3. Removable-media keywords
4. HDD keywords
5. Capacity heuristic, defaulting to HDD

Exactly one medium is produced per disk.
"""

from enum import Enum
from typing import List, Optional

from src.config.constants import (
    BYTES_PER_GIB,
    DISK_MANUFACTURER_NOISE,
    HDD_CAPACITY_FLOOR_GB,
    SSD_CAPACITY_CEILING_GB,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
)
from src.schemas.hardware import ClassificationResult, RawRecord, TextValue, UIntValue
from src.services.hardware.rules import Rule, first_success, match_keywords
from src.services.hardware.tables import DiskTables, get_tables
from src.utils.formatting import round_half_up


class DiskMedium(Enum):
    SSD = "固态"
    HDD = "机械"
    USB = "U盘"


def _medium(name: str) -> DiskMedium:
    return DiskMedium[str(name).upper()]


def disk_model(record: RawRecord) -> str:
    return record.stripped_text("Model") or record.stripped_text("FriendlyName")


def disk_capacity_gb(record: RawRecord) -> int:
    size = record.uint("Size")
    return round_half_up(size / BYTES_PER_GIB) if size else 0


def disk_manufacturer(record: RawRecord) -> str:
    manufacturer = record.stripped_text("Manufacturer")
    for noise in DISK_MANUFACTURER_NOISE:
        manufacturer = manufacturer.replace(noise, "")
    return manufacturer.strip() or UNKNOWN_MANUFACTURER


def build_disk_rules(tables: DiskTables) -> List[Rule[RawRecord]]:
    """Ordered rule list for disk medium classification."""

    def removable_bus(record: RawRecord) -> Optional[ClassificationResult]:
        bus = record.uint("BusType")
        if bus is not None and tables.bus_type_codes.get(bus) == "usb":
            return ClassificationResult(DiskMedium.USB, f"bus_type:{bus}")
        return None

    def media_type(record: RawRecord) -> Optional[ClassificationResult]:
        # Win32_DiskDrive reports text, MSFT_PhysicalDisk a numeric code
        value = record.get("MediaType")
        if isinstance(value, TextValue):
            key = value.text.strip().lower()
            if key in tables.media_type_text:
                return ClassificationResult(_medium(tables.media_type_text[key]), f"media_type:{key}")
        elif isinstance(value, UIntValue):
            if value.value in tables.media_type_codes:
                return ClassificationResult(_medium(tables.media_type_codes[value.value]),
                                            f"media_type:{value.value}")
        return None

    def bus_type(record: RawRecord) -> Optional[ClassificationResult]:
        bus = record.uint("BusType")
        if bus is not None and bus in tables.bus_type_codes:
            return ClassificationResult(_medium(tables.bus_type_codes[bus]), f"bus_type:{bus}")
        return None

    def ssd_keywords(record: RawRecord) -> Optional[ClassificationResult]:
        return match_keywords(tables.ssd_keywords, disk_model(record).lower(), DiskMedium.SSD)

    def usb_keywords(record: RawRecord) -> Optional[ClassificationResult]:
        return match_keywords(tables.usb_keywords, disk_model(record).lower(), DiskMedium.USB)

    def hdd_keywords(record: RawRecord) -> Optional[ClassificationResult]:
        return match_keywords(tables.hdd_keywords, disk_model(record).lower(), DiskMedium.HDD)

    def capacity_heuristic(record: RawRecord) -> ClassificationResult:
        model = disk_model(record).lower()
        capacity = disk_capacity_gb(record)
        if capacity <= SSD_CAPACITY_CEILING_GB and any(h in model for h in tables.flash_hints):
            return ClassificationResult(DiskMedium.SSD, f"capacity:<={SSD_CAPACITY_CEILING_GB}GB+flash")
        if capacity >= HDD_CAPACITY_FLOOR_GB and any(b in model for b in tables.hdd_brands):
            return ClassificationResult(DiskMedium.HDD, f"capacity:>={HDD_CAPACITY_FLOOR_GB}GB+brand")
        return ClassificationResult(DiskMedium.HDD, "default")

    return [
        Rule("removable_bus", removable_bus),
        Rule("media_type", media_type),
        Rule("bus_type", bus_type),
        Rule("ssd_keywords", ssd_keywords),
        Rule("usb_keywords", usb_keywords),
        Rule("hdd_keywords", hdd_keywords),
        Rule("capacity_heuristic", capacity_heuristic),
    ]


def classify_disk(record: RawRecord, tables: Optional[DiskTables] = None) -> ClassificationResult:
    """
    Classify a disk record as SSD, HDD or USB.

    Args:
        record: Win32_DiskDrive or MSFT_PhysicalDisk record
        tables: Disk lookup tables, defaults to the shared tables

    Returns:
        ClassificationResult whose value is a DiskMedium
    """
    rules = build_disk_rules(tables or get_tables().disk)
    # capacity_heuristic always answers, so the chain never comes back empty
    return first_success(rules, record)


def format_disk_line(index: int, record: RawRecord, tables: Optional[DiskTables] = None) -> str:
    medium = classify_disk(record, tables).value
    model = disk_model(record) or UNKNOWN_MODEL
    return f"硬盘{index}：{disk_manufacturer(record)}-{model}-{disk_capacity_gb(record)}GB-{medium.value}"

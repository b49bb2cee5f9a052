"""
Memory module classification.

Generation (DDR3, DDR4, ...) is resolved per module from, in order:

1. SMBIOSMemoryType, mapped through the SMBIOS type table
2. MemoryType, mapped through the older CIM type table
3. The clock speed, using non-overlapping speed bands

If none of these answer, the generation is unknown. Capacity is always
computed from the byte count, independent of generation.
"""

from typing import List, Optional

from src.config.constants import BYTES_PER_GIB, UNKNOWN_GENERATION, UNKNOWN_MANUFACTURER
from src.schemas.hardware import ClassificationResult, RawRecord
from src.services.hardware.rules import Rule, first_success
from src.services.hardware.tables import MemoryTables, get_tables
from src.utils.formatting import round_half_up


def module_speed_mhz(record: RawRecord) -> int:
    """Rated speed, falling back to the configured clock."""
    return record.uint("Speed") or record.uint("ConfiguredClockSpeed") or 0


def module_capacity_gb(record: RawRecord) -> int:
    capacity = record.uint("Capacity")
    return round_half_up(capacity / BYTES_PER_GIB) if capacity else 0


def total_capacity_gb(records: List[RawRecord]) -> int:
    total = sum(record.uint("Capacity") or 0 for record in records)
    return round_half_up(total / BYTES_PER_GIB)


def build_generation_rules(tables: MemoryTables) -> List[Rule[RawRecord]]:

    def smbios_type(record: RawRecord) -> Optional[ClassificationResult]:
        code = record.uint("SMBIOSMemoryType")
        if code is not None and code in tables.smbios_types:
            return ClassificationResult(tables.smbios_types[code], f"smbios_type:{code}")
        return None

    def cim_type(record: RawRecord) -> Optional[ClassificationResult]:
        code = record.uint("MemoryType")
        if code is not None and code in tables.cim_types:
            return ClassificationResult(tables.cim_types[code], f"memory_type:{code}")
        return None

    def speed_band(record: RawRecord) -> Optional[ClassificationResult]:
        speed = module_speed_mhz(record)
        for band in tables.speed_bands:
            if band.contains(speed):
                return ClassificationResult(band.generation, f"speed:{band.low}-{band.high}MHz")
        return None

    return [
        Rule("smbios_type", smbios_type),
        Rule("cim_type", cim_type),
        Rule("speed_band", speed_band),
    ]


def classify_generation(record: RawRecord,
                        tables: Optional[MemoryTables] = None) -> Optional[ClassificationResult]:
    """
    Detect the DDR generation of one memory module.

    Returns:
        ClassificationResult with the generation label, or None if unknown
    """
    return first_success(build_generation_rules(tables or get_tables().memory), record)


def format_memory_lines(records: List[RawRecord], tables: Optional[MemoryTables] = None) -> List[str]:
    """
    Summary lines for the installed modules: a total line followed by one
    line per module. Empty when no capacity is reported at all.
    """
    total_gb = total_capacity_gb(records)
    if total_gb <= 0:
        return []

    tables = tables or get_tables().memory
    lines = [f"总内存: {total_gb} GB"]
    for index, record in enumerate(records, start=1):
        manufacturer = record.stripped_text("Manufacturer") or UNKNOWN_MANUFACTURER
        generation = classify_generation(record, tables)
        label = generation.value if generation else UNKNOWN_GENERATION
        lines.append(
            f"内存{index}：{manufacturer}-{module_capacity_gb(record)}GB-{label}@{module_speed_mhz(record)}MHz"
        )
    return lines

"""
Network adapter classification: Bluetooth, WiFi or wired, plus a
sanity-filtered link speed.
"""

from typing import Optional

from src.config.constants import (
    BITS_PER_MBIT,
    MAX_PLAUSIBLE_LINK_MBPS,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
)
from src.schemas.hardware import ClassificationResult, RawRecord
from src.services.hardware.rules import match_keywords
from src.services.hardware.tables import NetworkTables, get_tables
from src.utils.formatting import round_half_up


def classify_adapter(name: str, tables: Optional[NetworkTables] = None) -> ClassificationResult:
    tables = tables or get_tables().network
    hit = match_keywords(tables.kinds, (name or "").lower())
    return hit or ClassificationResult(tables.default_kind, "default")


def link_speed_mbps(bits_per_second: Optional[int]) -> Optional[int]:
    """
    Convert a reported link speed to Mbps, or None when the value is zero or
    implausibly large (sources report 2^32-1 or 2^63-1 for "unknown").
    """
    if not bits_per_second:
        return None
    mbps = round_half_up(bits_per_second / BITS_PER_MBIT)
    if mbps == 0 or mbps > MAX_PLAUSIBLE_LINK_MBPS:
        return None
    return mbps


def record_speed_mbps(record: RawRecord) -> Optional[int]:
    # psutil reports Mbps directly
    direct = record.uint("SpeedMbps")
    if direct is not None:
        return direct if 0 < direct <= MAX_PLAUSIBLE_LINK_MBPS else None
    return link_speed_mbps(record.uint("Speed"))


def format_adapter_line(record: RawRecord, tables: Optional[NetworkTables] = None) -> str:
    name = record.stripped_text("Name") or UNKNOWN_MODEL
    manufacturer = record.stripped_text("Manufacturer") or UNKNOWN_MANUFACTURER
    kind = classify_adapter(name, tables).value
    line = f"{kind}：{manufacturer}-{name}"
    speed = record_speed_mbps(record)
    if speed is not None:
        line += f"-{speed}Mbps"
    return line

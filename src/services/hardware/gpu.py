"""
GPU VRAM estimation.

Win32_VideoController.AdapterRAM is a uint32 and saturates at 4 GB, and
vendor tools are not always installed, so no single reported value is
trusted. A name-based estimate is always computed and overrides the reported
value when the latter is implausible.

Name-based estimate, in order:
1. Known model table (substring match, most specific first)
2. Tier markers in the model number (RTX/GTX xx80, RX 7900, ...)
3. Integrated-graphics markers
4. Vendor default, then a global default
"""

import re
from typing import List, Optional

from src.config.constants import (
    BYTES_PER_GIB,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
    VRAM_HIGH_TIER_RATIO,
    VRAM_PLAUSIBLE_MAX_GB,
    VRAM_PLAUSIBLE_MIN_GB,
)
from src.schemas.hardware import ClassificationResult, RawRecord
from src.services.hardware.rules import Rule, first_success, match_keywords
from src.services.hardware.tables import GpuTables, get_tables
from src.utils.formatting import format_gb

NVIDIA_MODEL_NUMBER = re.compile(r"\b(?:rtx|gtx)\s*([a-z]?)(\d{3,4})\b")
RADEON_MODEL_NUMBER = re.compile(r"\brx\s*(\d{4})\b")

_TRADEMARKS = re.compile(r"\((?:tm|r)\)|®|™")


def normalize_gpu_name(name: str) -> str:
    """Lowercase, drop trademark marks and collapse whitespace."""
    cleaned = _TRADEMARKS.sub(" ", (name or "").lower())
    return " ".join(cleaned.split())


def build_vram_rules(tables: GpuTables) -> List[Rule[str]]:

    def known_model(name: str) -> Optional[ClassificationResult]:
        for pattern, gb in tables.vram_models:
            if pattern in name:
                return ClassificationResult(gb, f"model:{pattern}")
        return None

    def tier_marker(name: str) -> Optional[ClassificationResult]:
        match = NVIDIA_MODEL_NUMBER.search(name)
        # Lettered professional parts (RTX A4000) carry no gaming tier
        if match and not match.group(1):
            tier = match.group(2)[-2:]
            if tier in tables.nvidia_tiers:
                return ClassificationResult(tables.nvidia_tiers[tier], f"nvidia_tier:{tier}")
        if "radeon" in name:
            match = RADEON_MODEL_NUMBER.search(name)
            if match and match.group(1) in tables.radeon_tiers:
                return ClassificationResult(tables.radeon_tiers[match.group(1)],
                                            f"radeon_tier:{match.group(1)}")
        return None

    def integrated(name: str) -> Optional[ClassificationResult]:
        for marker in tables.integrated_markers:
            if marker in name:
                return ClassificationResult(tables.integrated_vram_gb, f"integrated:{marker}")
        return None

    def vendor_default(name: str) -> Optional[ClassificationResult]:
        if "rtx" in name or "gtx" in name:
            return ClassificationResult(tables.nvidia_default_gb, "default:nvidia")
        return None

    def default(name: str) -> ClassificationResult:
        return ClassificationResult(tables.default_gb, "default")

    return [
        Rule("known_model", known_model),
        Rule("tier_marker", tier_marker),
        Rule("integrated", integrated),
        Rule("vendor_default", vendor_default),
        Rule("default", default),
    ]


def estimate_vram(name: str, tables: Optional[GpuTables] = None) -> ClassificationResult:
    """Name-based VRAM estimate in GB; always answers."""
    return first_success(build_vram_rules(tables or get_tables().gpu), normalize_gpu_name(name))


def reconcile_vram(name: str, reported_gb: Optional[float],
                   tables: Optional[GpuTables] = None) -> ClassificationResult:
    """
    Choose between a reported VRAM value and the name-based estimate.

    The estimate wins when nothing was reported, when the report is outside
    the plausible range, when it is under a known floor for the model, or
    when an RTX part reports less than half of its estimate.
    """
    tables = tables or get_tables().gpu
    estimate = estimate_vram(name, tables)
    if reported_gb is None:
        return estimate

    normalized = normalize_gpu_name(name)
    if reported_gb < VRAM_PLAUSIBLE_MIN_GB or reported_gb > VRAM_PLAUSIBLE_MAX_GB:
        return ClassificationResult(estimate.value, f"override:implausible({estimate.signal})")
    for marker, floor in tables.vram_floors.items():
        if marker in normalized and reported_gb < floor:
            return ClassificationResult(estimate.value, f"override:floor:{marker}")
    if "rtx" in normalized and reported_gb < estimate.value * VRAM_HIGH_TIER_RATIO:
        return ClassificationResult(estimate.value, f"override:undersized({estimate.signal})")
    return ClassificationResult(reported_gb, "reported")


def reported_vram_gb(record: RawRecord) -> Optional[float]:
    """VRAM in GB as reported by the source, preferring a vendor tool's figure."""
    size = record.uint("DedicatedMemory")
    if size is None:
        size = record.uint("AdapterRAM")
    if not size:
        return None
    return size / BYTES_PER_GIB


def gpu_vendor(record: RawRecord, tables: Optional[GpuTables] = None) -> str:
    tables = tables or get_tables().gpu
    hit = match_keywords(tables.vendors, normalize_gpu_name(record.text("Name") or ""))
    if hit:
        return hit.value
    return record.stripped_text("AdapterCompatibility") or UNKNOWN_MANUFACTURER


def format_gpu_line(index: int, record: RawRecord, tables: Optional[GpuTables] = None) -> str:
    tables = tables or get_tables().gpu
    name = record.stripped_text("Name")
    vram = reconcile_vram(name, reported_vram_gb(record), tables)
    return f"显卡{index}：{gpu_vendor(record, tables)}+{name or UNKNOWN_MODEL}+{format_gb(vram.value)}GB"

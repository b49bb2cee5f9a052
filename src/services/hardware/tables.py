"""
Lookup tables for the hardware classifiers.

Loads hardware_tables.yaml into typed, immutable structures so each
classifier can treat its keyword and code tables as data.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from src.utils.logger import log


class TablesError(Exception):
    """Raised when the lookup table file is missing or has the wrong shape."""
    pass


@dataclass(frozen=True)
class KeywordEntry:
    """All of ``tokens`` must occur and none of ``excluded`` may occur."""
    tokens: Tuple[str, ...]
    excluded: Tuple[str, ...] = ()
    result: Any = None

    def matches(self, text: str) -> bool:
        return (all(token in text for token in self.tokens)
                and not any(token in text for token in self.excluded))

    @property
    def signal(self) -> str:
        return "+".join(self.tokens)


@dataclass(frozen=True)
class SpeedBand:
    low: int
    high: int
    generation: str

    def contains(self, mhz: int) -> bool:
        return self.low <= mhz <= self.high


@dataclass(frozen=True)
class ProductLine:
    marker: str
    builds: Dict[int, str]
    below_oldest: Optional[str] = None   # label for builds older than every known one

    @property
    def thresholds(self) -> List[Tuple[int, str]]:
        """Known builds, newest first."""
        return sorted(self.builds.items(), reverse=True)


@dataclass
class DiskTables:
    media_type_text: Dict[str, str] = field(default_factory=dict)
    media_type_codes: Dict[int, str] = field(default_factory=dict)
    bus_type_codes: Dict[int, str] = field(default_factory=dict)
    ssd_keywords: List[KeywordEntry] = field(default_factory=list)
    usb_keywords: List[KeywordEntry] = field(default_factory=list)
    hdd_keywords: List[KeywordEntry] = field(default_factory=list)
    flash_hints: Tuple[str, ...] = ()
    hdd_brands: Tuple[str, ...] = ()


@dataclass
class MemoryTables:
    smbios_types: Dict[int, str] = field(default_factory=dict)
    cim_types: Dict[int, str] = field(default_factory=dict)
    speed_bands: List[SpeedBand] = field(default_factory=list)


@dataclass
class GpuTables:
    vram_models: List[Tuple[str, float]] = field(default_factory=list)
    nvidia_tiers: Dict[str, float] = field(default_factory=dict)
    radeon_tiers: Dict[str, float] = field(default_factory=dict)
    integrated_markers: Tuple[str, ...] = ()
    integrated_vram_gb: float = 2
    nvidia_default_gb: float = 6
    default_gb: float = 4
    vram_floors: Dict[str, float] = field(default_factory=dict)
    vendors: List[KeywordEntry] = field(default_factory=list)


@dataclass
class NetworkTables:
    kinds: List[KeywordEntry] = field(default_factory=list)
    default_kind: str = "网卡"


@dataclass
class HardwareTables:
    disk: DiskTables
    memory: MemoryTables
    gpu: GpuTables
    network: NetworkTables
    product_lines: List[ProductLine]

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HardwareTables":
        try:
            return cls(
                disk=_parse_disk(raw.get("disk") or {}),
                memory=_parse_memory(raw.get("memory") or {}),
                gpu=_parse_gpu(raw.get("gpu") or {}),
                network=_parse_network(raw.get("network") or {}),
                product_lines=_parse_product_lines(raw.get("os_versions") or {}),
            )
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise TablesError(f"Malformed lookup tables: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> "HardwareTables":
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise TablesError(f"Lookup tables not found: {path}") from e
        except yaml.YAMLError as e:
            raise TablesError(f"Failed to parse lookup tables: {e}") from e
        return cls.from_dict(raw)


def _keywords(entries: Optional[List[Dict[str, Any]]]) -> List[KeywordEntry]:
    parsed = []
    for entry in entries or []:
        parsed.append(KeywordEntry(
            tokens=tuple(str(t).lower() for t in entry["all"]),
            excluded=tuple(str(t).lower() for t in entry.get("none", ())),
            result=entry.get("result"),
        ))
    return parsed


def _int_keyed(mapping: Optional[Dict[Any, Any]]) -> Dict[int, str]:
    return {int(k): str(v) for k, v in (mapping or {}).items()}


def _parse_disk(raw: Dict[str, Any]) -> DiskTables:
    return DiskTables(
        media_type_text={str(e["match"]).lower(): str(e["result"]) for e in raw.get("media_type_text", [])},
        media_type_codes=_int_keyed(raw.get("media_type_codes")),
        bus_type_codes=_int_keyed(raw.get("bus_type_codes")),
        ssd_keywords=_keywords(raw.get("ssd_keywords")),
        usb_keywords=_keywords(raw.get("usb_keywords")),
        hdd_keywords=_keywords(raw.get("hdd_keywords")),
        flash_hints=tuple(str(t).lower() for t in raw.get("flash_hints", [])),
        hdd_brands=tuple(str(t).lower() for t in raw.get("hdd_brands", [])),
    )


def _parse_memory(raw: Dict[str, Any]) -> MemoryTables:
    bands = [SpeedBand(int(low), int(high), str(gen)) for low, high, gen in raw.get("speed_bands", [])]
    bands.sort(key=lambda b: b.low)
    for previous, current in zip(bands, bands[1:]):
        if current.low <= previous.high:
            raise ValueError(f"Overlapping speed bands at {current.low} MHz")
    return MemoryTables(
        smbios_types=_int_keyed(raw.get("smbios_types")),
        cim_types=_int_keyed(raw.get("cim_types")),
        speed_bands=bands,
    )


def _parse_gpu(raw: Dict[str, Any]) -> GpuTables:
    defaults = GpuTables()
    return GpuTables(
        vram_models=[(str(name).lower(), float(gb)) for name, gb in raw.get("vram_models", [])],
        nvidia_tiers={str(k): float(v) for k, v in (raw.get("nvidia_tiers") or {}).items()},
        radeon_tiers={str(k): float(v) for k, v in (raw.get("radeon_tiers") or {}).items()},
        integrated_markers=tuple(str(t).lower() for t in raw.get("integrated_markers", [])),
        integrated_vram_gb=float(raw.get("integrated_vram_gb", defaults.integrated_vram_gb)),
        nvidia_default_gb=float(raw.get("nvidia_default_gb", defaults.nvidia_default_gb)),
        default_gb=float(raw.get("default_gb", defaults.default_gb)),
        vram_floors={str(k).lower(): float(v) for k, v in (raw.get("vram_floors") or {}).items()},
        vendors=_keywords(raw.get("vendors")),
    )


def _parse_network(raw: Dict[str, Any]) -> NetworkTables:
    return NetworkTables(
        kinds=_keywords(raw.get("kinds")),
        default_kind=str(raw.get("default_kind", NetworkTables.default_kind)),
    )


def _parse_product_lines(raw: Dict[str, Any]) -> List[ProductLine]:
    return [
        ProductLine(
            marker=str(line["marker"]).lower(),
            builds=_int_keyed(line.get("builds")),
            below_oldest=str(line["below_oldest"]) if line.get("below_oldest") else None,
        )
        for line in raw.get("product_lines", [])
    ]


@lru_cache(maxsize=1)
def get_tables() -> HardwareTables:
    """
    Shared tables: the bundled YAML with any user overrides merged in.
    Cached for the life of the process.
    """
    from src.config.manager import config_manager

    raw = config_manager.get_tables()
    if not raw:
        raise TablesError("No lookup tables available")
    tables = HardwareTables.from_dict(raw)
    log.debug(f"Loaded lookup tables ({len(tables.gpu.vram_models)} GPU models, "
              f"{len(tables.product_lines)} OS product lines)")
    return tables

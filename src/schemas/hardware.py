"""
Data model for the hardware inventory engine.

Raw values coming out of a management-data source are a closed tagged union
(TextValue | UIntValue | BytesValue). Consumers read fields through the typed
accessors on RawRecord, which treat a tag mismatch as an absent field.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from src.utils.logger import log


# =============================================================================
# Raw values
# =============================================================================

UINT_WIDTHS = (8, 16, 32, 64)


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class UIntValue:
    value: int
    width: int = 32

    def __post_init__(self):
        if self.width not in UINT_WIDTHS:
            raise ValueError(f"Unsupported integer width: {self.width}")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Not an integer: {self.value!r}")
        if not 0 <= self.value < (1 << self.width):
            raise ValueError(f"{self.value} does not fit in uint{self.width}")


@dataclass(frozen=True)
class BytesValue:
    data: bytes


RawValue = Union[TextValue, UIntValue, BytesValue]


class RawRecord(Mapping):
    """
    Immutable ordered mapping of field name to RawValue.

    One record per physical unit returned by a query.
    """

    __slots__ = ("_fields", "source")

    def __init__(self, fields: Union[Iterable[Tuple[str, RawValue]], Dict[str, RawValue]] = (),
                 source: str = ""):
        items = fields.items() if isinstance(fields, dict) else fields
        ordered: Dict[str, RawValue] = {}
        for name, value in items:
            if not isinstance(value, (TextValue, UIntValue, BytesValue)):
                raise TypeError(f"Field {name!r} is not a RawValue: {value!r}")
            ordered[name] = value
        self._fields = MappingProxyType(ordered)
        self.source = source

    def __getitem__(self, name: str) -> RawValue:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"RawRecord({dict(self._fields)!r}, source={self.source!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RawRecord):
            return list(self._fields.items()) == list(other._fields.items())
        return NotImplemented

    def __hash__(self):
        return hash(tuple(self._fields.items()))

    def _mismatch(self, name: str, value: RawValue, expected: str) -> None:
        log.debug(f"Malformed field {name!r}: expected {expected}, got {type(value).__name__}")

    def text(self, name: str) -> Optional[str]:
        value = self._fields.get(name)
        if value is None:
            return None
        if isinstance(value, TextValue):
            return value.text
        self._mismatch(name, value, "text")
        return None

    def uint(self, name: str) -> Optional[int]:
        value = self._fields.get(name)
        if value is None:
            return None
        if isinstance(value, UIntValue):
            return value.value
        self._mismatch(name, value, "uint")
        return None

    def data(self, name: str) -> Optional[bytes]:
        value = self._fields.get(name)
        if value is None:
            return None
        if isinstance(value, BytesValue):
            return value.data
        self._mismatch(name, value, "bytes")
        return None

    def stripped_text(self, name: str) -> str:
        """Text field trimmed of whitespace, empty string when absent."""
        return (self.text(name) or "").strip()


# =============================================================================
# Selectors
# =============================================================================

class FieldKind(Enum):
    TEXT = "text"
    UINT8 = 8
    UINT16 = 16
    UINT32 = 32
    UINT64 = 64
    BYTES = "bytes"

    @property
    def is_uint(self) -> bool:
        return isinstance(self.value, int)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.TEXT


@dataclass(frozen=True)
class Selector:
    """Names a management table, the fields wanted from it and an optional filter."""
    table: str
    fields: Tuple[FieldSpec, ...]
    namespace: str = "root\\cimv2"
    where: Optional[str] = None

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def wql(self) -> str:
        query = f"SELECT {', '.join(self.field_names)} FROM {self.table}"
        if self.where:
            query += f" WHERE {self.where}"
        return query

    def kind_of(self, name: str) -> Optional[FieldKind]:
        for spec in self.fields:
            if spec.name == name:
                return spec.kind
        return None


# =============================================================================
# Resolved entities
# =============================================================================

@dataclass(frozen=True)
class DisplayIdentity:
    manufacturer: str
    product_code: str = ""
    serial_number: str = ""
    manufacture_week: int = 0          # 0..52
    manufacture_year: int = 0          # 0..99, offset from 1990 in EDID
    screen_size_h: Optional[int] = None  # centimetres, byte scale
    screen_size_v: Optional[int] = None
    friendly_name: Optional[str] = None
    resolution: Optional[str] = None     # "1920x1080@60Hz"


@dataclass(frozen=True)
class ClassificationResult:
    """A categorical or numeric estimate and the signal that produced it."""
    value: Any
    signal: str


class InventoryCategory(Enum):
    OS = "os"
    MANUFACTURER = "manufacturer"
    MOTHERBOARD = "motherboard"
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    GPU = "gpu"
    NETWORK = "network"
    MONITOR = "monitor"


CATEGORY_ORDER = list(InventoryCategory)


@dataclass(frozen=True)
class InventoryLine:
    category: InventoryCategory
    index: int       # 1-based unit ordinal in source order; 0 for headers, totals and unknowns
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass
class InventorySnapshot:
    """Output of InventoryService.build_snapshot()"""
    lines: List[InventoryLine] = field(default_factory=list)
    degraded: List[InventoryCategory] = field(default_factory=list)  # resolved to "unknown"

    def by_category(self, category: InventoryCategory) -> List[str]:
        return [line.text for line in self.lines if line.category == category]

    def as_dict(self) -> Dict[str, List[str]]:
        return {category.value: self.by_category(category) for category in CATEGORY_ORDER}

    def texts(self) -> List[str]:
        return [line.text for line in self.lines]

    def render(self) -> str:
        return "\n".join(self.texts())

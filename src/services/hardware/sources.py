"""
Management-data sources.

A source answers ``query(selector) -> List[RawRecord]`` and raises
SourceUnavailableError when it cannot. Provider-native values are converted to
RawValues according to the kind each selector field declares; anything that
does not fit is dropped from the record.

Implementations:
- WmiSource: COM via the ``wmi`` package (Windows only)
- PowerShellCimSource: Get-CimInstance piped through ConvertTo-Json
- RecordedSource: replays a YAML capture of raw tables
"""

import platform
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

import yaml

from src.config.constants import DEFAULT_COMMAND_TIMEOUT
from src.schemas.hardware import (
    BytesValue,
    FieldKind,
    RawRecord,
    RawValue,
    Selector,
    TextValue,
    UIntValue,
)
from src.services.hardware.base import MalformedFieldError, SourceUnavailableError
from src.utils.logger import log
from src.utils.subprocess_utils import extract_json, run_powershell


class ManagementSource(Protocol):
    name: str

    def query(self, selector: Selector) -> List[RawRecord]:
        ...


# =============================================================================
# Native value conversion
# =============================================================================

def to_raw_value(kind: FieldKind, native: Any, field_name: str = "") -> RawValue:
    """
    Convert a provider-native value to the declared kind.

    Raises:
        MalformedFieldError: the value cannot represent the declared kind
    """
    try:
        if kind == FieldKind.TEXT:
            if isinstance(native, (bytes, bytearray, list, tuple, dict)):
                raise ValueError(f"expected a scalar, got {type(native).__name__}")
            return TextValue(str(native))

        if kind == FieldKind.BYTES:
            if isinstance(native, (bytes, bytearray)):
                return BytesValue(bytes(native))
            if isinstance(native, (list, tuple)):
                # Values above 0xFF (uint16 arrays) become unprintable bytes
                return BytesValue(bytes(
                    int(b) if 0 <= int(b) <= 0xFF else 0xFF for b in native
                ))
            raise ValueError(f"expected a byte array, got {type(native).__name__}")

        if isinstance(native, bool):
            return UIntValue(int(native), kind.value)
        if isinstance(native, float):
            if not native.is_integer():
                raise ValueError(f"non-integral number {native}")
            return UIntValue(int(native), kind.value)
        if isinstance(native, str):
            # COM marshals uint64 properties as decimal strings
            return UIntValue(int(native.strip()), kind.value)
        if isinstance(native, int):
            return UIntValue(native, kind.value)
        raise ValueError(f"expected an integer, got {type(native).__name__}")
    except (TypeError, ValueError) as e:
        raise MalformedFieldError("source", f"Field {field_name or '?'} does not fit {kind.name}", str(e))


def build_record(selector: Selector, native: Mapping[str, Any], source: str = "") -> RawRecord:
    """Build a RawRecord holding the selector's fields found in ``native``."""
    by_lower = {str(k).lower(): v for k, v in native.items()}
    fields = []
    for spec in selector.fields:
        value = native.get(spec.name, by_lower.get(spec.name.lower()))
        if value is None:
            continue
        try:
            fields.append((spec.name, to_raw_value(spec.kind, value, spec.name)))
        except MalformedFieldError as e:
            log.debug(f"{selector.table}: {e}")
    return RawRecord(fields, source=source)


def record_to_native(record: RawRecord) -> Dict[str, Any]:
    """Inverse of build_record for captures: plain YAML-friendly values."""
    native: Dict[str, Any] = {}
    for name, value in record.items():
        if isinstance(value, TextValue):
            native[name] = value.text
        elif isinstance(value, UIntValue):
            native[name] = value.value
        else:
            native[name] = list(value.data)
    return native


# =============================================================================
# WMI over COM
# =============================================================================

def _connect_wmi(namespace: str):
    import pythoncom
    import wmi

    # Each thread that talks to COM needs its own apartment
    pythoncom.CoInitialize()
    return wmi.WMI(namespace=namespace)


class WmiSource:
    """Queries WMI through the ``wmi`` package, one connection per namespace."""

    name = "wmi"

    def __init__(self, connect: Optional[Callable[[str], Any]] = None):
        self._connect = connect or _connect_wmi
        self._connections: Dict[str, Any] = {}

    def _connection(self, namespace: str):
        if namespace not in self._connections:
            try:
                self._connections[namespace] = self._connect(namespace)
            except Exception as e:
                raise SourceUnavailableError(self.name, f"Cannot connect to {namespace}", str(e))
        return self._connections[namespace]

    def query(self, selector: Selector) -> List[RawRecord]:
        connection = self._connection(selector.namespace)
        try:
            instances = connection.query(selector.wql)
        except Exception as e:
            raise SourceUnavailableError(self.name, f"{selector.table} query failed", str(e))

        records = []
        for instance in instances:
            native = {}
            for name in selector.field_names:
                try:
                    native[name] = getattr(instance, name)
                except AttributeError:
                    continue
            records.append(build_record(selector, native, self.name))
        log.debug(f"wmi: {selector.table} returned {len(records)} record(s)")
        return records


# =============================================================================
# PowerShell CIM
# =============================================================================

def build_cim_script(selector: Selector) -> str:
    script = f"Get-CimInstance -Namespace '{selector.namespace}' -ClassName {selector.table}"
    if selector.where:
        script += f" -Filter \"{selector.where}\""
    script += f" | Select-Object {','.join(selector.field_names)} | ConvertTo-Json -Compress -Depth 3"
    return script


class PowerShellCimSource:
    """Queries CIM through PowerShell, for machines where COM access fails."""

    name = "powershell"

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT,
                 runner: Callable[..., Optional[str]] = run_powershell):
        self.timeout = timeout
        self._runner = runner

    def query(self, selector: Selector) -> List[RawRecord]:
        output = self._runner(build_cim_script(selector), timeout=self.timeout)
        if output is None:
            raise SourceUnavailableError(self.name, f"{selector.table} query failed")
        if not output.strip():
            # No instances: ConvertTo-Json prints nothing
            return []

        data = extract_json(output)
        if data is None:
            raise SourceUnavailableError(self.name, f"{selector.table} returned unparseable output")
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise SourceUnavailableError(self.name, f"{selector.table} returned {type(data).__name__}")

        records = [build_record(selector, item, self.name) for item in data if isinstance(item, dict)]
        log.debug(f"powershell: {selector.table} returned {len(records)} record(s)")
        return records


# =============================================================================
# Recorded captures
# =============================================================================

class RecordedSource:
    """
    Replays raw tables captured from a real machine.

    The capture is a YAML mapping of table name to a list of field mappings.
    Tables missing from the capture behave as unavailable.
    """

    name = "recorded"

    def __init__(self, tables: Dict[str, List[Dict[str, Any]]]):
        self._tables = tables or {}

    @classmethod
    def from_file(cls, path) -> "RecordedSource":
        try:
            with open(Path(path), "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SourceUnavailableError(cls.name, f"Cannot read capture {path}", str(e))
        if not isinstance(data, dict):
            raise SourceUnavailableError(cls.name, f"Capture {path} is not a mapping of tables")
        return cls(data)

    def query(self, selector: Selector) -> List[RawRecord]:
        if selector.table not in self._tables:
            raise SourceUnavailableError(self.name, f"{selector.table} not in capture")
        rows = self._tables[selector.table] or []
        return [build_record(selector, row, self.name) for row in rows if isinstance(row, dict)]


def capture_tables(source: ManagementSource, selectors: Sequence[Selector]) -> Dict[str, List[Dict[str, Any]]]:
    """Query every selector and return a structure RecordedSource can replay."""
    captured: Dict[str, List[Dict[str, Any]]] = {}
    for selector in selectors:
        try:
            records = source.query(selector)
        except SourceUnavailableError as e:
            log.warning(f"Skipping {selector.table} in capture: {e}")
            continue
        captured[selector.table] = [record_to_native(r) for r in records]
    return captured


def write_capture(captured: Dict[str, List[Dict[str, Any]]], path) -> None:
    with open(Path(path), "w", encoding="utf-8") as f:
        yaml.safe_dump(captured, f, allow_unicode=True, sort_keys=False)


def create_default_sources(preferred: str = "auto",
                           timeout: float = DEFAULT_COMMAND_TIMEOUT) -> List[ManagementSource]:
    """Live sources for this machine, most capable first; empty off Windows."""
    if platform.system() != "Windows":
        log.warning("Management data is only available on Windows")
        return []

    sources: List[ManagementSource] = []
    if preferred in ("auto", "wmi"):
        sources.append(WmiSource())
    if preferred in ("auto", "powershell"):
        sources.append(PowerShellCimSource(timeout=timeout))
    return sources

"""
Shared fixtures: the bundled lookup tables and a RawRecord factory.
"""

from pathlib import Path

import pytest

from src.config.manager import ConfigManager
from src.schemas.hardware import BytesValue, RawRecord, TextValue, UIntValue
from src.services.hardware.tables import HardwareTables


@pytest.fixture(scope="session")
def tables():
    """Bundled tables only, so user overrides on the test machine don't leak in."""
    return HardwareTables.from_file(Path(ConfigManager.TABLES_FILE))


@pytest.fixture
def make_record():
    """Build a RawRecord from keyword fields: str -> text, bytes -> bytes, int -> uint64."""
    def _make(source="test", **fields):
        values = []
        for name, value in fields.items():
            if isinstance(value, str):
                values.append((name, TextValue(value)))
            elif isinstance(value, (bytes, bytearray)):
                values.append((name, BytesValue(bytes(value))))
            else:
                values.append((name, UIntValue(value, 64)))
        return RawRecord(values, source=source)
    return _make

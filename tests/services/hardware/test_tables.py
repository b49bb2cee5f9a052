"""
Unit tests for lookup table loading.
"""

import pytest

from src.services.hardware.tables import HardwareTables, TablesError, get_tables


def test_bundled_tables_load(tables):
    assert tables.memory.smbios_types[26] == "DDR4"
    assert tables.memory.cim_types[24] == "DDR3"
    assert tables.disk.media_type_codes[4] == "ssd"
    assert tables.network.default_kind == "网卡"
    assert [line.marker for line in tables.product_lines] == ["windows 11", "windows 10"]


def test_speed_bands_do_not_overlap(tables):
    bands = tables.memory.speed_bands
    for previous, current in zip(bands, bands[1:]):
        assert current.low > previous.high


def test_vram_models_are_most_specific_first(tables):
    patterns = [pattern for pattern, _ in tables.gpu.vram_models]
    for index, pattern in enumerate(patterns):
        for later in patterns[index + 1:]:
            assert pattern not in later, f"{later!r} is shadowed by {pattern!r}"


def test_product_line_thresholds_newest_first(tables):
    windows_10 = next(line for line in tables.product_lines if line.marker == "windows 10")
    builds = [build for build, _ in windows_10.thresholds]
    assert builds == sorted(builds, reverse=True)


def test_overlapping_speed_bands_rejected():
    raw = {"memory": {"speed_bands": [[200, 500, "DDR"], [400, 799, "DDR2"]]}}
    with pytest.raises(TablesError):
        HardwareTables.from_dict(raw)


def test_malformed_keyword_entry_rejected():
    with pytest.raises(TablesError):
        HardwareTables.from_dict({"disk": {"ssd_keywords": [{"none": ["usb"]}]}})


def test_empty_tables_use_defaults():
    tables = HardwareTables.from_dict({})
    assert tables.disk.ssd_keywords == []
    assert tables.gpu.default_gb == 4
    assert tables.network.default_kind == "网卡"


def test_keywords_are_lowercased():
    tables = HardwareTables.from_dict({"network": {"kinds": [{"all": ["WiFi"], "result": "WiFi"}]}})
    assert tables.network.kinds[0].tokens == ("wifi",)


def test_missing_file(tmp_path):
    with pytest.raises(TablesError):
        HardwareTables.from_file(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("disk: [unclosed", encoding="utf-8")
    with pytest.raises(TablesError):
        HardwareTables.from_file(path)


def test_shared_tables_are_cached():
    assert get_tables() is get_tables()

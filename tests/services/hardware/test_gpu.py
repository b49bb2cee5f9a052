"""
Unit tests for GPU VRAM estimation and the reported-value cross-check.
"""

import pytest

from src.config.constants import BYTES_PER_GIB
from src.services.hardware.gpu import (
    build_vram_rules,
    estimate_vram,
    format_gpu_line,
    gpu_vendor,
    normalize_gpu_name,
    reconcile_vram,
    reported_vram_gb,
)

SATURATED_ADAPTER_RAM = 4293918720  # uint32 ceiling Windows reports for large cards


def test_normalize_gpu_name():
    assert normalize_gpu_name("NVIDIA GeForce(R)  RTX™ 3060") == "nvidia geforce rtx 3060"
    assert normalize_gpu_name("Intel(TM) Iris(R) Xe Graphics") == "intel iris xe graphics"


def test_rule_order(tables):
    names = [rule.name for rule in build_vram_rules(tables.gpu)]
    assert names == ["known_model", "tier_marker", "integrated", "vendor_default", "default"]


class TestEstimateVram:

    @pytest.mark.parametrize("name,expected", [
        ("NVIDIA GeForce RTX 3080", 10),
        ("NVIDIA GeForce RTX 3080 Ti", 12),
        ("NVIDIA RTX A4000", 16),
        ("AMD Radeon RX 7900 XTX", 24),
        ("AMD Radeon RX 7900 XT", 20),
        ("Intel(R) Arc(TM) A770 Graphics", 16),
    ])
    def test_known_models(self, tables, name, expected):
        assert estimate_vram(name, tables.gpu).value == expected

    def test_nvidia_tier(self, tables):
        result = estimate_vram("NVIDIA GeForce RTX 2050", tables.gpu)
        assert result.value == 4
        assert result.signal == "nvidia_tier:50"

    def test_radeon_tier(self, tables):
        result = estimate_vram("AMD Radeon RX 6700", tables.gpu)
        assert result.value == 12
        assert result.signal == "radeon_tier:6700"

    @pytest.mark.parametrize("name", ["Intel(R) UHD Graphics 770", "AMD Radeon(TM) Graphics"])
    def test_integrated(self, tables, name):
        result = estimate_vram(name, tables.gpu)
        assert result.value == 2
        assert result.signal.startswith("integrated:")

    def test_nvidia_default(self, tables):
        assert estimate_vram("NVIDIA GeForce GTX 1630", tables.gpu).signal == "default:nvidia"

    def test_default(self, tables):
        result = estimate_vram("Virtual Display Device", tables.gpu)
        assert result.value == 4
        assert result.signal == "default"


class TestReconcileVram:

    def test_missing_report_uses_estimate(self, tables):
        assert reconcile_vram("NVIDIA GeForce RTX 3080", None, tables.gpu).value == 10

    def test_undersized_rtx_report_is_overridden(self, tables):
        result = reconcile_vram("NVIDIA GeForce RTX 3080", 4.0, tables.gpu)
        assert result.value == 10
        assert result.signal.startswith("override:undersized")

    @pytest.mark.parametrize("reported", [1.0, 150.0])
    def test_implausible_report_is_overridden(self, tables, reported):
        result = reconcile_vram("NVIDIA GeForce GTX 1080", reported, tables.gpu)
        assert result.value == 8
        assert result.signal.startswith("override:implausible")

    def test_a4000_floor(self, tables):
        result = reconcile_vram("NVIDIA RTX A4000", 8.0, tables.gpu)
        assert result.value == 16
        assert result.signal == "override:floor:rtx a4000"

    def test_plausible_report_is_kept(self, tables):
        result = reconcile_vram("NVIDIA GeForce RTX 3060", 12.0, tables.gpu)
        assert result.value == 12.0
        assert result.signal == "reported"

    def test_non_rtx_small_report_is_kept(self, tables):
        assert reconcile_vram("NVIDIA GeForce GTX 1080", 3.0, tables.gpu).value == 3.0


class TestRecordHelpers:

    def test_reported_prefers_dedicated_memory(self, make_record):
        record = make_record(AdapterRAM=SATURATED_ADAPTER_RAM, DedicatedMemory=12 * BYTES_PER_GIB)
        assert reported_vram_gb(record) == 12.0

    def test_reported_missing(self, make_record):
        assert reported_vram_gb(make_record(AdapterRAM=0)) is None
        assert reported_vram_gb(make_record()) is None

    def test_vendor_from_name(self, make_record, tables):
        assert gpu_vendor(make_record(Name="NVIDIA GeForce RTX 3060"), tables.gpu) == "NVIDIA"
        assert gpu_vendor(make_record(Name="AMD Radeon RX 6600"), tables.gpu) == "AMD"

    def test_vendor_from_adapter_compatibility(self, make_record, tables):
        record = make_record(Name="G200eR2", AdapterCompatibility="Matrox Graphics, Inc.")
        assert gpu_vendor(record, tables.gpu) == "Matrox Graphics, Inc."
        assert gpu_vendor(make_record(Name="G200eR2"), tables.gpu) == "未知制造商"

    def test_format_line_overrides_saturated_report(self, make_record, tables):
        record = make_record(Name="NVIDIA GeForce RTX 3080", AdapterRAM=SATURATED_ADAPTER_RAM)
        assert format_gpu_line(1, record, tables.gpu) == "显卡1：NVIDIA+NVIDIA GeForce RTX 3080+10GB"

    def test_format_line_fractional_vram(self, make_record, tables):
        record = make_record(Name="NVIDIA GeForce GTX 1080", DedicatedMemory=int(7.5 * BYTES_PER_GIB))
        assert format_gpu_line(2, record, tables.gpu) == "显卡2：NVIDIA+NVIDIA GeForce GTX 1080+7.5GB"

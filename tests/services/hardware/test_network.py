"""
Unit tests for network adapter classification and link speed handling.
"""

import pytest

from src.services.hardware.network import (
    classify_adapter,
    format_adapter_line,
    link_speed_mbps,
    record_speed_mbps,
)


@pytest.mark.parametrize("name,expected", [
    ("Intel(R) Wi-Fi 6 AX201 160MHz", "WiFi"),
    ("Intel(R) Wireless-AC 9560 160MHz", "WiFi"),
    ("Qualcomm Atheros QCA61x4A 802.11ac Wireless Adapter", "WiFi"),
    ("Realtek RTL8822CE WLAN", "WiFi"),
    ("无线网络适配器", "WiFi"),
    ("Bluetooth Device (Personal Area Network)", "蓝牙"),
    ("Wireless Bluetooth Adapter", "蓝牙"),
    ("蓝牙设备(个人区域网)", "蓝牙"),
    ("Realtek PCIe GbE Family Controller", "网卡"),
])
def test_classify_adapter(tables, name, expected):
    assert classify_adapter(name, tables.network).value == expected


def test_default_kind_signal(tables):
    assert classify_adapter("Intel(R) Ethernet Controller I225-V", tables.network).signal == "default"


class TestLinkSpeed:

    def test_converts_bits_to_mbps(self):
        assert link_speed_mbps(1_000_000_000) == 1000
        assert link_speed_mbps(866_700_000) == 867

    @pytest.mark.parametrize("bits", [None, 0, 9_223_372_036_854_775_807])
    def test_suppressed(self, bits):
        assert link_speed_mbps(bits) is None

    def test_upper_bound_is_inclusive(self):
        assert link_speed_mbps(100_000_000_000) == 100_000

    def test_record_speed_prefers_direct_mbps(self, make_record):
        assert record_speed_mbps(make_record(SpeedMbps=866, Speed=1_000_000_000)) == 866
        assert record_speed_mbps(make_record(SpeedMbps=0)) is None
        assert record_speed_mbps(make_record(Speed=100_000_000)) == 100


class TestFormatAdapterLine:

    def test_wired_with_speed(self, make_record, tables):
        record = make_record(Name="Realtek PCIe GbE Family Controller", Manufacturer="Realtek",
                             Speed=1_000_000_000)
        assert format_adapter_line(record, tables.network) == \
            "网卡：Realtek-Realtek PCIe GbE Family Controller-1000Mbps"

    def test_speed_segment_omitted_when_suppressed(self, make_record, tables):
        record = make_record(Name="Intel(R) Wi-Fi 6 AX201 160MHz", Manufacturer="Intel Corporation",
                             Speed=9_223_372_036_854_775_807)
        assert format_adapter_line(record, tables.network) == "WiFi：Intel Corporation-Intel(R) Wi-Fi 6 AX201 160MHz"

    def test_unknown_manufacturer(self, make_record, tables):
        record = make_record(Name="Bluetooth Device (Personal Area Network)")
        assert format_adapter_line(record, tables.network) == \
            "蓝牙：未知制造商-Bluetooth Device (Personal Area Network)"

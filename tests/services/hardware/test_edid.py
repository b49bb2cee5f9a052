"""
Unit tests for display identity resolution and monitor line formatting.
"""

from unittest.mock import MagicMock

import pytest

from src.config.constants import NO_MONITOR_DETECTED
from src.schemas.hardware import DisplayIdentity
from src.services.hardware.base import SourceUnavailableError
from src.services.hardware.edid import (
    EdidResolver,
    controller_resolutions,
    diagonal_inches,
    format_display,
    format_monitor_lines,
)

INSTANCE = "DISPLAY\\SAM0F9B\\5&2b1f8a&0&UID4352_0"


@pytest.fixture
def monitor_id(make_record):
    def _make(manufacturer=b"SAM\x00\x00", **overrides):
        fields = dict(
            InstanceName=INSTANCE,
            ManufacturerName=manufacturer,
            ProductCodeID=b"0F9B\x00",
            SerialNumberID=b"H4ZR900123\x00",
            WeekOfManufacture=14,
            YearOfManufacture=2021,
        )
        fields.update(overrides)
        return make_record(**fields)
    return _make


class TestFromMonitorId:

    def test_decodes_identity(self, monitor_id):
        identity = EdidResolver.from_monitor_id(monitor_id(UserFriendlyName=b"S27R65x\x00"))
        assert identity.manufacturer == "SAM"
        assert identity.product_code == "0F9B"
        assert identity.serial_number == "H4ZR900123"
        assert identity.friendly_name == "S27R65x"
        assert identity.manufacture_week == 14
        assert identity.manufacture_year == 31

    def test_clamps_week_and_year(self, monitor_id):
        identity = EdidResolver.from_monitor_id(monitor_id(WeekOfManufacture=255, YearOfManufacture=2200))
        assert identity.manufacture_week == 52
        assert identity.manufacture_year == 99

    @pytest.mark.parametrize("manufacturer", [b"\x00\x00\x00", b"AB\x00", b"0000", b""])
    def test_rejects_degenerate_manufacturer(self, monitor_id, manufacturer):
        assert EdidResolver.from_monitor_id(monitor_id(manufacturer)) is None

    def test_size_comes_from_params_record(self, monitor_id, make_record):
        params = make_record(InstanceName=INSTANCE, MaxHorizontalImageSize=60, MaxVerticalImageSize=34)
        identity = EdidResolver.from_monitor_id(monitor_id(), params)
        assert (identity.screen_size_h, identity.screen_size_v) == (60, 34)

    def test_zero_size_is_absent(self, monitor_id, make_record):
        params = make_record(MaxHorizontalImageSize=0, MaxVerticalImageSize=0)
        identity = EdidResolver.from_monitor_id(monitor_id(), params)
        assert identity.screen_size_h is None
        assert identity.screen_size_v is None


class TestResolve:

    def test_joins_size_by_instance_name(self, monitor_id, make_record):
        other = make_record(InstanceName="DISPLAY\\OTHER\\1", MaxHorizontalImageSize=1, MaxVerticalImageSize=1)
        params = make_record(InstanceName=INSTANCE, MaxHorizontalImageSize=34, MaxVerticalImageSize=19)
        displays = EdidResolver().resolve([monitor_id()], [other, params])
        assert displays[0].screen_size_h == 34

    def test_falls_back_to_position_for_size(self, monitor_id, make_record):
        params = make_record(MaxHorizontalImageSize=53, MaxVerticalImageSize=30)
        displays = EdidResolver().resolve([monitor_id(InstanceName="")], [params])
        assert displays[0].screen_size_h == 53

    def test_preserves_source_order(self, monitor_id):
        displays = EdidResolver().resolve([monitor_id(b"SAM"), monitor_id(b"DEL"), monitor_id(b"AUS")])
        assert [d.manufacturer for d in displays] == ["SAM", "DEL", "AUS"]

    def test_resolutions_follow_accepted_displays(self, monitor_id):
        displays = EdidResolver().resolve(
            [monitor_id(b"\x00\x00"), monitor_id(b"DEL")],
            resolutions=["1920x1080@60Hz", "2560x1440@144Hz"],
        )
        assert len(displays) == 1
        assert displays[0].resolution == "1920x1080@60Hz"

    def test_secondary_not_consulted_when_primary_succeeds(self, monitor_id):
        secondary = MagicMock()
        EdidResolver().resolve([monitor_id()], secondary=secondary)
        secondary.assert_not_called()

    def test_secondary_used_when_primary_yields_nothing(self, monitor_id, make_record):
        secondary = MagicMock(return_value=[
            make_record(MonitorManufacturer="(标准监视器类型)", Name="通用即插即用监视器"),
            make_record(MonitorManufacturer="Dell Inc.", Name="DELL P2419H", ScreenWidth=1920, ScreenHeight=1080),
        ])
        displays = EdidResolver().resolve([monitor_id(b"\x00")], secondary=secondary)
        secondary.assert_called_once()
        assert len(displays) == 1
        assert displays[0].manufacturer == "Dell Inc."
        assert displays[0].product_code == "DELL P2419H"
        assert displays[0].resolution == "1920x1080@?Hz"
        assert displays[0].screen_size_h is None

    def test_secondary_filters_placeholders(self, make_record):
        secondary = MagicMock(return_value=[
            make_record(MonitorManufacturer="Generic PnP Monitor"),
            make_record(MonitorManufacturer="(Standard monitor types)"),
            make_record(MonitorManufacturer="None"),
            make_record(MonitorManufacturer=""),
        ])
        assert EdidResolver().resolve([], secondary=secondary) == []

    def test_secondary_null_manufacturer_matches_exactly(self, make_record):
        secondary = MagicMock(return_value=[make_record(MonitorManufacturer="Nonex Display")])
        displays = EdidResolver().resolve([], secondary=secondary)
        assert [d.manufacturer for d in displays] == ["Nonex Display"]

    def test_secondary_failure_yields_empty(self):
        secondary = MagicMock(side_effect=SourceUnavailableError("wmi", "down"))
        assert EdidResolver().resolve([], secondary=secondary) == []


class TestFormatting:

    def test_diagonal_rounds_half_up(self):
        assert diagonal_inches(34, 19) == 15
        assert diagonal_inches(60, 34) == 27

    @pytest.mark.parametrize("h,v", [(0, 19), (34, 0), (None, 19), (34, None)])
    def test_diagonal_unknown(self, h, v):
        assert diagonal_inches(h, v) is None

    def test_format_display_with_size(self):
        identity = DisplayIdentity(manufacturer="SAM", product_code="0F9B", screen_size_h=34, screen_size_v=19)
        assert format_display(identity) == "SAM-0F9B-15英寸"

    def test_format_display_prefers_friendly_name(self):
        identity = DisplayIdentity(manufacturer="GSM", product_code="5B7F", friendly_name="LG ULTRAGEAR")
        assert format_display(identity) == "GSM-LG ULTRAGEAR-未知尺寸"

    def test_format_display_unknown_model(self):
        assert format_display(DisplayIdentity(manufacturer="SAM")) == "SAM-未知型号-未知尺寸"

    def test_monitor_lines(self):
        displays = [
            DisplayIdentity(manufacturer="SAM", product_code="0F9B", screen_size_h=34, screen_size_v=19,
                            resolution="1920x1080@60Hz"),
            DisplayIdentity(manufacturer="DEL", product_code="A0B1"),
        ]
        assert format_monitor_lines(displays) == [
            "显示器1：SAM-0F9B-15英寸-1920x1080@60Hz",
            "显示器2：DEL-A0B1-未知尺寸-?x?@?Hz",
        ]

    def test_resolution_only_lines(self):
        assert format_monitor_lines([], ["1920x1080@60Hz"]) == ["显示器1：1920x1080@60Hz"]

    def test_nothing_detected(self):
        assert format_monitor_lines([], []) == [NO_MONITOR_DETECTED]


class TestControllerResolutions:

    def test_collects_current_modes(self, make_record):
        records = [
            make_record(CurrentHorizontalResolution=2560, CurrentVerticalResolution=1440, CurrentRefreshRate=144),
            make_record(CurrentHorizontalResolution=1920, CurrentVerticalResolution=1080),
            make_record(Name="Microsoft Basic Display Adapter"),
        ]
        assert controller_resolutions(records) == ["2560x1440@144Hz", "1920x1080@?Hz"]

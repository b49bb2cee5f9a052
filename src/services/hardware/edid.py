"""
Display identity resolution from EDID-derived management tables.

Primary source is WmiMonitorID (binary identifier blocks decoded with
decode_binary_field), joined with WmiMonitorBasicDisplayParams for the
physical size. When the primary yields nothing usable the coarser
Win32_DesktopMonitor table is consulted instead.
"""

import math
from typing import Callable, Dict, List, Optional, Sequence

from src.config.constants import (
    MAX_MANUFACTURE_WEEK,
    MAX_MANUFACTURE_YEAR,
    MONITOR_NULL_MANUFACTURERS,
    MONITOR_PLACEHOLDERS,
    NO_MONITOR_DETECTED,
    CM_PER_INCH,
    UNKNOWN_MANUFACTURER,
    UNKNOWN_MODEL,
    UNKNOWN_RESOLUTION,
    UNKNOWN_SIZE,
)
from src.schemas.hardware import DisplayIdentity, RawRecord
from src.services.hardware.base import DegenerateDecodeError, SourceUnavailableError
from src.services.hardware.decoder import decode_binary_field, require_manufacturer
from src.utils.formatting import round_half_up
from src.utils.logger import log

EDID_BASE_YEAR = 1990


def _decode_optional(data: Optional[bytes]) -> str:
    """Decoded text, or "" when the block is absent, blank or undecodable."""
    if not data or not any(data):
        return ""
    text = decode_binary_field(data)
    return "" if text == UNKNOWN_MANUFACTURER else text


def _clamp_week(value: Optional[int]) -> int:
    return min(value or 0, MAX_MANUFACTURE_WEEK)


def _clamp_year(value: Optional[int]) -> int:
    # WMI reports the full year; EDID stores the offset from 1990
    year = value or 0
    if year >= EDID_BASE_YEAR:
        year -= EDID_BASE_YEAR
    return min(year, MAX_MANUFACTURE_YEAR)


def _positive(value: Optional[int]) -> Optional[int]:
    return value if value else None


def controller_resolutions(records: Sequence[RawRecord]) -> List[str]:
    """'1920x1080@60Hz' per video controller that reports a current mode."""
    resolutions = []
    for record in records:
        width = record.uint("CurrentHorizontalResolution")
        height = record.uint("CurrentVerticalResolution")
        if not width or not height:
            continue
        refresh = record.uint("CurrentRefreshRate")
        resolutions.append(f"{width}x{height}@{refresh if refresh else '?'}Hz")
    return resolutions


class EdidResolver:
    """
    Builds DisplayIdentity values from raw monitor records.

    Usage:
        resolver = EdidResolver()
        displays = resolver.resolve(monitor_ids, size_records, resolutions,
                                    secondary=lambda: source.query(DESKTOP_MONITOR))
    """

    def resolve(
        self,
        primary: Sequence[RawRecord],
        size_records: Sequence[RawRecord] = (),
        resolutions: Sequence[str] = (),
        secondary: Optional[Callable[[], Sequence[RawRecord]]] = None,
    ) -> List[DisplayIdentity]:
        """
        Args:
            primary: WmiMonitorID records
            size_records: WmiMonitorBasicDisplayParams records
            resolutions: current modes by controller position
            secondary: loader for Win32_DesktopMonitor, called only when the
                primary source yields no accepted display

        Returns:
            Accepted displays in source order
        """
        by_instance: Dict[str, RawRecord] = {}
        for record in size_records:
            instance = record.stripped_text("InstanceName")
            if instance:
                by_instance[instance] = record

        displays: List[DisplayIdentity] = []
        for position, record in enumerate(primary):
            size_record = by_instance.get(record.stripped_text("InstanceName"))
            if size_record is None and position < len(size_records):
                size_record = size_records[position]
            resolution = resolutions[len(displays)] if len(displays) < len(resolutions) else None
            identity = self.from_monitor_id(record, size_record, resolution)
            if identity is not None:
                displays.append(identity)

        if displays or secondary is None:
            return displays

        log.debug("No usable EDID identities, falling back to desktop monitor table")
        try:
            fallback = secondary()
        except SourceUnavailableError as e:
            log.debug(f"Desktop monitor table unavailable: {e}")
            return displays

        for record in fallback:
            resolution = resolutions[len(displays)] if len(displays) < len(resolutions) else None
            identity = self.from_desktop_monitor(record, resolution)
            if identity is not None:
                displays.append(identity)
        return displays

    @staticmethod
    def from_monitor_id(record: RawRecord, size_record: Optional[RawRecord] = None,
                        resolution: Optional[str] = None) -> Optional[DisplayIdentity]:
        """Decode one WmiMonitorID record; None when the manufacturer fails the quality filter."""
        try:
            manufacturer = require_manufacturer(_decode_optional(record.data("ManufacturerName")))
        except DegenerateDecodeError as e:
            log.debug(str(e))
            return None

        return DisplayIdentity(
            manufacturer=manufacturer,
            product_code=_decode_optional(record.data("ProductCodeID")),
            serial_number=_decode_optional(record.data("SerialNumberID")),
            manufacture_week=_clamp_week(record.uint("WeekOfManufacture")),
            manufacture_year=_clamp_year(record.uint("YearOfManufacture")),
            screen_size_h=_positive(size_record.uint("MaxHorizontalImageSize")) if size_record else None,
            screen_size_v=_positive(size_record.uint("MaxVerticalImageSize")) if size_record else None,
            friendly_name=_decode_optional(record.data("UserFriendlyName")) or None,
            resolution=resolution,
        )

    @staticmethod
    def from_desktop_monitor(record: RawRecord, resolution: Optional[str] = None) -> Optional[DisplayIdentity]:
        """Plain-string Win32_DesktopMonitor entry; None for placeholders."""
        manufacturer = record.stripped_text("MonitorManufacturer")
        if (not manufacturer or manufacturer in MONITOR_NULL_MANUFACTURERS
                or any(p in manufacturer for p in MONITOR_PLACEHOLDERS)):
            return None

        if resolution is None:
            width = record.uint("ScreenWidth")
            height = record.uint("ScreenHeight")
            if width and height:
                resolution = f"{width}x{height}@?Hz"

        return DisplayIdentity(
            manufacturer=manufacturer,
            product_code=record.stripped_text("Name"),
            resolution=resolution,
        )


def diagonal_inches(horizontal: Optional[int], vertical: Optional[int]) -> Optional[int]:
    """Diagonal from physical width/height in centimetres; None if either is missing."""
    if not horizontal or not vertical:
        return None
    return round_half_up(math.hypot(horizontal, vertical) / CM_PER_INCH)


def format_display(identity: DisplayIdentity) -> str:
    """'<manufacturer>-<model>-<N>英寸' or with 未知尺寸 when the size is unknown."""
    manufacturer = identity.manufacturer or UNKNOWN_MANUFACTURER
    model = identity.friendly_name or identity.product_code or UNKNOWN_MODEL
    inches = diagonal_inches(identity.screen_size_h, identity.screen_size_v)
    size = f"{inches}英寸" if inches is not None else UNKNOWN_SIZE
    return f"{manufacturer}-{model}-{size}"


def format_monitor_lines(displays: Sequence[DisplayIdentity], resolutions: Sequence[str] = ()) -> List[str]:
    if displays:
        return [
            f"显示器{index}：{format_display(d)}-{d.resolution or UNKNOWN_RESOLUTION}"
            for index, d in enumerate(displays, start=1)
        ]
    if resolutions:
        return [f"显示器{index}：{res}" for index, res in enumerate(resolutions, start=1)]
    return [NO_MONITOR_DETECTED]

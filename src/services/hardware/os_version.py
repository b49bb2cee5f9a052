"""
Marketing version labels ("22H2") for Windows builds.

The dotted version from Win32_OperatingSystem ("10.0.19045") carries the
build number in its third component. Known builds map exactly; unknown
builds fall back to the newest known build not exceeding them.
"""

from typing import List, Optional

from src.config.constants import UNKNOWN_VERSION
from src.services.hardware.tables import ProductLine, get_tables


def _parse_build(component: str) -> Optional[int]:
    component = component.strip()
    return int(component) if component.isdigit() else None


def label_for_build(line: ProductLine, build: int) -> str:
    if build in line.builds:
        return line.builds[build]
    for threshold, label in line.thresholds:
        if build >= threshold:
            return label
    return line.below_oldest or UNKNOWN_VERSION


def resolve_version_label(os_name: str, version: str,
                          product_lines: Optional[List[ProductLine]] = None) -> str:
    """
    Map an OS caption and dotted version to a marketing label.

    Examples:
        resolve_version_label("Microsoft Windows 10 Pro", "10.0.19045")  # "22H2"
        resolve_version_label("Microsoft Windows 11 Home", "10.0.22621") # "22H2"
        resolve_version_label("Windows Server 2022", "10.0.20348")       # "10H0"
    """
    parts = (version or "").strip().split(".")
    if len(parts) < 2 or not all(p.strip() for p in parts[:2]):
        return UNKNOWN_VERSION

    lines = product_lines if product_lines is not None else get_tables().product_lines
    name = (os_name or "").lower()
    for line in lines:
        if line.marker in name:
            build = _parse_build(parts[2]) if len(parts) >= 3 else None
            if build is None:
                return UNKNOWN_VERSION
            return label_for_build(line, build)

    return f"{parts[0].strip()}H{parts[1].strip()}"

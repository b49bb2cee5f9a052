"""
Decoding of fixed-width binary identifier fields (EDID manufacturer,
product and serial blocks) into printable text.

Vendor blobs arrive as raw ASCII, UTF-8 or padding garbage; decoding never
raises and prefers a clean decode over a lossy one. The manufacturer quality
filter raises DegenerateDecodeError so callers can drop the record.
"""

import unicodedata
from typing import Iterable, Union

from src.config.constants import (
    CORRUPT_EDID_MARKER,
    MIN_MANUFACTURER_LENGTH,
    UNKNOWN_MANUFACTURER,
)
from src.services.hardware.base import DegenerateDecodeError

_STRIP_CHARS = "\x00 \t\r\n\x0b\x0c"


def _is_all_control(text: str) -> bool:
    return all(unicodedata.category(ch) == "Cc" for ch in text)


def _to_bytes(data: Union[bytes, bytearray, Iterable[int]]) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return bytes(b if isinstance(b, int) and 0 <= b <= 255 else 0xFF for b in list(data))


def decode_binary_field(data: Union[bytes, bytearray, Iterable[int]]) -> str:
    """
    Decode a binary identifier field.

    1. Drop zero bytes; a clean UTF-8 decode that is not blank or pure
       control characters wins.
    2. Otherwise map printable ASCII bytes through and everything else to '?'.
    3. Otherwise return the unknown-manufacturer sentinel.

    Values outside 0..255 in an integer sequence are treated as unprintable.
    """
    payload = _to_bytes(data).replace(b"\x00", b"")

    try:
        text = payload.decode("utf-8").strip(_STRIP_CHARS)
    except UnicodeDecodeError:
        text = ""
    if text and not _is_all_control(text):
        return text

    ascii_text = "".join(chr(b) if 32 <= b <= 126 else "?" for b in payload).strip()
    if ascii_text:
        return ascii_text

    return UNKNOWN_MANUFACTURER


def is_degenerate(text: str) -> bool:
    """
    Quality filter for a decoded manufacturer: empty, the sentinel, too short,
    the corrupt-EDID marker, or nothing printable.
    """
    if not text or text == UNKNOWN_MANUFACTURER:
        return True
    if len(text) < MIN_MANUFACTURER_LENGTH:
        return True
    if CORRUPT_EDID_MARKER in text:
        return True
    return _is_all_control(text)


def require_manufacturer(text: str) -> str:
    """Return ``text`` if it passes the quality filter, else raise DegenerateDecodeError."""
    if is_degenerate(text):
        raise DegenerateDecodeError("edid", "Rejected decoded manufacturer", repr(text))
    return text

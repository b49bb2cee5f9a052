"""
Error taxonomy for hardware inventory.

Every error except InventoryUnavailableError is recovered locally by the
component that sees it: the field, record or source is treated as absent and
the next fallback is consulted.
"""

from typing import Optional


class InventoryError(Exception):
    """Base error carrying the hardware component it concerns."""

    def __init__(self, component: str, message: str, details: Optional[str] = None):
        self.component = component
        self.message = message
        self.details = details
        text = f"[{component}] {message}"
        if details:
            text += f" ({details})"
        super().__init__(text)


class SourceUnavailableError(InventoryError):
    """A management-data or command source could not answer a query."""


class MalformedFieldError(InventoryError):
    """A field is present but has the wrong tag or shape."""


class DegenerateDecodeError(InventoryError):
    """A decoded string failed the quality filter."""


class InventoryUnavailableError(InventoryError):
    """No management-data subsystem is reachable; the whole snapshot fails."""

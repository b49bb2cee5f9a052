import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def format_gb(value: float) -> str:
    """Render a GB amount without a trailing ".0" (8.0 -> "8", 7.5 -> "7.5")."""
    value = round(value, 1)
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"

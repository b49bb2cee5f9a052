import pytest

from src.utils.formatting import format_gb, round_half_up


@pytest.mark.parametrize("value,expected", [
    (2.5, 3),
    (0.5, 1),
    (-2.5, -3),
    (15.33, 15),
    (931.5, 932),
    (0, 0),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("value,expected", [(8.0, "8"), (7.5, "7.5"), (15.99, "16"), (1.04, "1")])
def test_format_gb(value, expected):
    assert format_gb(value) == expected

"""Unit tests for dimension unit conversion."""

from __future__ import annotations

import pytest

from rfqintel.intelligence.units import to_cm
from rfqintel.models import DimensionUnit


@pytest.mark.parametrize(
    "value,unit,expected",
    [
        (100, "mm", 10.0),
        (55, "cm", 55.0),
        (1.2, "m", 120.0),
        (10, "in", 25.4),
        (1, "IN", 2.54),
    ],
)
def test_to_cm_factors(value, unit, expected):
    assert to_cm(value, unit) == pytest.approx(expected)


def test_to_cm_accepts_enum_members():
    assert to_cm(250, DimensionUnit.MM) == pytest.approx(25.0)
    assert to_cm(2, DimensionUnit.INCH) == pytest.approx(5.08)


def test_cm_is_identity():
    assert to_cm(33.3333, "cm") == 33.3333


def test_unknown_unit_rejected():
    with pytest.raises(ValueError, match="Unsupported"):
        to_cm(1, "ft")

"""Unit conversion for item dimensions.

All stored dimensions are normalized to centimeters. Factors are exact; no
rounding is applied here (only CBM is rounded, see ``volume``).
"""

from __future__ import annotations

from enum import Enum


def unit_key(unit: str | Enum) -> str:
    """Return the plain lowercase unit code for a string or DimensionUnit."""
    value = unit.value if isinstance(unit, Enum) else unit
    return str(value).strip().lower()


def to_cm(value: float, unit: str | Enum) -> float:
    """Convert a raw dimension value to centimeters.

    Args:
        value: Numeric dimension in ``unit``
        unit: One of mm, cm, m, in

    Returns:
        The value in centimeters

    Raises:
        ValueError: If the unit is not supported
    """
    key = unit_key(unit)
    if key == "cm":
        return float(value)
    if key == "mm":
        return value / 10
    if key == "m":
        return value * 100
    if key == "in":
        return value * 2.54
    raise ValueError(f"Unsupported dimension unit: {unit!r}")

"""Volume (CBM) calculation over normalized dimensions."""

from __future__ import annotations

CBM_PRECISION = 6
CUBIC_CM_PER_CBM = 1_000_000


def calculate_cbm(
    width_cm: float | None, depth_cm: float | None, height_cm: float | None
) -> float | None:
    """Cubic meters from centimeter dimensions.

    Returns None unless all three dimensions are present; a partially
    dimensioned item never carries a volume.
    """
    if width_cm is None or depth_cm is None or height_cm is None:
        return None
    return round(width_cm * depth_cm * height_cm / CUBIC_CM_PER_CBM, CBM_PRECISION)

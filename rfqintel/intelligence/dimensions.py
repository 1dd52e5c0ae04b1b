"""Dimension normalization.

Resolves the three per-axis patch states against the stored item, converts
supplied values to centimeters and enforces the range cap before and after
conversion. Nothing here mutates the item; the caller applies the result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

from rfqintel.errors import DimensionOutOfRangeError, DimensionViolation
from rfqintel.intelligence.units import to_cm, unit_key
from rfqintel.validation.patch import (
    DIMENSION_AXES,
    UNSET,
    Clear,
    FieldInput,
    Value,
)

logger = logging.getLogger(__name__)

MAX_DIMENSION_CM = 5000.0
DEFAULT_UNIT = "cm"


@dataclass(frozen=True)
class StoredDimensions:
    """Dimension columns as currently persisted."""

    width_original: float | None = None
    depth_original: float | None = None
    height_original: float | None = None
    width_cm: float | None = None
    depth_cm: float | None = None
    height_cm: float | None = None
    unit: str | None = None

    @classmethod
    def from_item(cls, item: Any) -> StoredDimensions:
        unit = item.dimension_units_original
        return cls(
            width_original=item.dimension_width_original,
            depth_original=item.dimension_depth_original,
            height_original=item.dimension_height_original,
            width_cm=item.dimension_width_cm,
            depth_cm=item.dimension_depth_cm,
            height_cm=item.dimension_height_cm,
            unit=unit_key(unit) if unit is not None else None,
        )

    def original(self, axis: str) -> float | None:
        return getattr(self, f"{axis}_original")

    def cm(self, axis: str) -> float | None:
        return getattr(self, f"{axis}_cm")


@dataclass(frozen=True)
class AxisResult:
    axis: str
    original: float | None
    cm: float | None
    changed: bool


@dataclass(frozen=True)
class DimensionResult:
    """Normalized dimension state for one update."""

    axes: dict[str, AxisResult]
    unit: str | None
    previous_unit: str | None
    unit_defaulted: bool = False

    @property
    def unit_changed(self) -> bool:
        return self.unit != self.previous_unit

    @property
    def dimension_changed(self) -> bool:
        return any(a.changed for a in self.axes.values())

    @property
    def unit_normalized(self) -> bool:
        return self.unit_changed or self.dimension_changed

    @property
    def any_cleared(self) -> bool:
        return any(a.changed and a.cm is None for a in self.axes.values())


def parse_dimension(raw: Any) -> float | None:
    """Parse a raw axis value; None when it is not a finite number."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        try:
            number = float(str(raw).strip())
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class DimensionNormalizer:
    """Turns dimension patch inputs into original + centimeter values.

    Axes absent from the update keep their stored original and centimeter
    values even when the resolved unit changes.
    """

    def __init__(
        self,
        max_dimension_cm: float = MAX_DIMENSION_CM,
        default_unit: str = DEFAULT_UNIT,
    ):
        self.max_dimension_cm = max_dimension_cm
        self.default_unit = default_unit

    def normalize(
        self,
        axis_inputs: Mapping[str, FieldInput],
        unit_input: FieldInput,
        stored: StoredDimensions,
    ) -> DimensionResult:
        """Normalize one update's dimension fields.

        Args:
            axis_inputs: axis name -> patch state (missing axes count as UNSET)
            unit_input: patch state of ``dimension_units_original``
            stored: current persisted dimension columns

        Returns:
            DimensionResult with per-axis original/cm values and unit

        Raises:
            DimensionOutOfRangeError: Any axis <= 0 or above the cap, before
                or after conversion; every offending axis is listed
        """
        inputs = {axis: axis_inputs.get(axis, UNSET) for axis in DIMENSION_AXES}

        # Stage 1: parse and check raw values
        parsed: dict[str, float] = {}
        violations: list[DimensionViolation] = []
        for axis, field_input in inputs.items():
            if not isinstance(field_input, Value):
                continue
            number = parse_dimension(field_input.value)
            if number is None or number <= 0:
                violations.append(
                    DimensionViolation(
                        axis,
                        field_input.value,
                        DimensionOutOfRangeError.PRE_CONVERSION,
                        "must be a number greater than 0",
                    )
                )
            elif number > self.max_dimension_cm:
                violations.append(
                    DimensionViolation(
                        axis,
                        number,
                        DimensionOutOfRangeError.PRE_CONVERSION,
                        f"must not exceed {_fmt(self.max_dimension_cm)}",
                    )
                )
            else:
                parsed[axis] = number
        if violations:
            raise DimensionOutOfRangeError(violations)

        # Stage 2: resolve the unit
        unit, defaulted = self._resolve_unit(inputs, unit_input, stored, bool(parsed))

        # Stage 3: convert and re-check
        axes: dict[str, AxisResult] = {}
        for axis, field_input in inputs.items():
            if isinstance(field_input, Clear):
                original, cm = None, None
            elif axis in parsed:
                original = parsed[axis]
                cm = to_cm(original, unit)
            else:
                original = stored.original(axis)
                cm = stored.cm(axis)

            if axis in parsed and cm > self.max_dimension_cm:
                violations.append(
                    DimensionViolation(
                        axis,
                        original,
                        DimensionOutOfRangeError.POST_CONVERSION,
                        f"exceeds {_fmt(self.max_dimension_cm)} cm after conversion "
                        f"from {unit}",
                    )
                )
            changed = original != stored.original(axis) or cm != stored.cm(axis)
            axes[axis] = AxisResult(axis=axis, original=original, cm=cm, changed=changed)
        if violations:
            raise DimensionOutOfRangeError(violations)

        result = DimensionResult(
            axes=axes, unit=unit, previous_unit=stored.unit, unit_defaulted=defaulted
        )
        logger.debug(
            "Normalized dimensions unit=%s changed=%s cleared=%s",
            unit,
            result.dimension_changed,
            result.any_cleared,
        )
        return result

    def _resolve_unit(
        self,
        inputs: Mapping[str, FieldInput],
        unit_input: FieldInput,
        stored: StoredDimensions,
        has_values: bool,
    ) -> tuple[str | None, bool]:
        """Pick the unit for this update; returns (unit, was_defaulted)."""
        if isinstance(unit_input, Value):
            return unit_key(unit_input.value), False

        if has_values:
            return self.default_unit, True

        if isinstance(unit_input, Clear):
            remaining = [
                axis
                for axis, field_input in inputs.items()
                if not isinstance(field_input, Clear) and stored.original(axis) is not None
            ]
            if remaining:
                # originals still on file stay in the unit they were entered in
                if stored.unit is not None:
                    return stored.unit, False
                return self.default_unit, True
            return None, False

        # Nothing unit-related supplied: a clear-only update keeps the stored unit
        return stored.unit, False

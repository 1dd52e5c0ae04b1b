"""Typed item patch.

Each whitelisted field carries one of three states:

- ``UNSET``: the field was not in the payload, leave it alone
- ``CLEAR``: the field was present but empty, null it out
- ``Value(x)``: the field was present with a sanitized value
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Generic, Mapping, TypeVar, Union

T = TypeVar("T")

DIMENSION_AXES = ("width", "depth", "height")


class Unset:
    """Field absent from the payload."""

    _instance: Unset | None = None

    def __new__(cls) -> Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


class Clear:
    """Field present but explicitly emptied."""

    _instance: Clear | None = None

    def __new__(cls) -> Clear:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEAR"


@dataclass(frozen=True)
class Value(Generic[T]):
    value: T


UNSET = Unset()
CLEAR = Clear()

FieldInput = Union[Unset, Clear, Value]


def is_supplied(field_input: FieldInput) -> bool:
    return not isinstance(field_input, Unset)


def resolve(field_input: FieldInput, current: Any) -> Any:
    """New value for a field given its patch state and the stored value."""
    if isinstance(field_input, Value):
        return field_input.value
    if isinstance(field_input, Clear):
        return None
    return current


@dataclass(frozen=True)
class ItemPatch:
    """Every whitelisted update field as an explicit tri-state member."""

    title: FieldInput = UNSET
    description: FieldInput = UNSET
    status: FieldInput = UNSET
    item_type: FieldInput = UNSET
    sourcing_type: FieldInput = UNSET
    product_category: FieldInput = UNSET
    quantity: FieldInput = UNSET
    finishes: FieldInput = UNSET
    notes: FieldInput = UNSET
    delivery_country_code: FieldInput = UNSET
    delivery_postal_code: FieldInput = UNSET
    dimension_width: FieldInput = UNSET
    dimension_depth: FieldInput = UNSET
    dimension_height: FieldInput = UNSET
    dimension_units_original: FieldInput = UNSET

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, FieldInput]) -> ItemPatch:
        return cls(**dict(inputs))

    def supplied(self) -> dict[str, FieldInput]:
        """Fields present in the payload, in declaration order."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if is_supplied(getattr(self, f.name))
        }

    def dimension_inputs(self) -> dict[str, FieldInput]:
        return {axis: getattr(self, f"dimension_{axis}") for axis in DIMENSION_AXES}

    @property
    def touches_dimensions(self) -> bool:
        return is_supplied(self.dimension_units_original) or any(
            is_supplied(v) for v in self.dimension_inputs().values()
        )

    @property
    def is_empty(self) -> bool:
        return not self.supplied()

"""Field whitelist and validator for item updates.

The whitelist is immutable data handed to ``FieldValidator`` at construction.
Unknown keys are rejected all at once before any per-field work happens, so an
invalid payload never produces partial side effects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

from rfqintel.errors import (
    InvalidEnumValueError,
    InvalidFieldValueError,
    MaxLengthExceededError,
    UnknownFieldError,
)
from rfqintel.models import DimensionUnit, ItemStatus, ItemType, SourcingType
from rfqintel.validation.patch import CLEAR, FieldInput, ItemPatch, Value

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"[\r\n\t ]+")
_KEY_RE = re.compile(r"[^a-z0-9_\-]")


def sanitize_text(value: Any) -> str:
    """Single-line text: tags stripped, whitespace collapsed, trimmed."""
    text = _TAG_RE.sub("", str(value))
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_textarea(value: Any) -> str:
    """Multi-line text: tags stripped, line breaks kept."""
    text = _TAG_RE.sub("", str(value)).replace("\r\n", "\n")
    return "\n".join(line.rstrip() for line in text.split("\n")).strip()


def sanitize_key(value: Any) -> str:
    return _KEY_RE.sub("", str(value).strip().lower())


def sanitize_dimension(value: Any) -> Any:
    # Numeric parsing belongs to the normalizer so bad numbers surface as
    # range violations with the axis attached.
    if isinstance(value, str):
        return value.strip()
    return value


def sanitize_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("must be a whole number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("must be a whole number")
        value = int(value)
    try:
        quantity = int(str(value).strip())
    except ValueError:
        raise ValueError("must be a whole number") from None
    if quantity < 1:
        raise ValueError("must be at least 1")
    return quantity


def sanitize_country_code(value: Any) -> str:
    code = sanitize_text(value).upper()
    if code and not (len(code) == 2 and code.isalpha()):
        raise ValueError("must be a two-letter country code")
    return code


@dataclass(frozen=True)
class FieldSpec:
    """Whitelist entry for one updatable field."""

    name: str
    sanitizer: Callable[[Any], Any]
    max_length: int | None = None
    allowed_values: tuple[str, ...] | None = None
    nullable: bool = True
    required: bool = False


def _enum_values(enum_cls: type) -> tuple[str, ...]:
    return tuple(member.value for member in enum_cls)


_ITEM_FIELDS = (
    FieldSpec("title", sanitize_text, max_length=500, nullable=False, required=True),
    FieldSpec("description", sanitize_textarea, nullable=False),
    FieldSpec(
        "status",
        sanitize_key,
        max_length=50,
        allowed_values=_enum_values(ItemStatus),
        nullable=False,
    ),
    FieldSpec(
        "item_type",
        sanitize_key,
        max_length=100,
        allowed_values=_enum_values(ItemType),
        nullable=False,
    ),
    FieldSpec(
        "sourcing_type",
        sanitize_key,
        max_length=50,
        allowed_values=_enum_values(SourcingType),
    ),
    FieldSpec("product_category", sanitize_text, max_length=255),
    FieldSpec("quantity", sanitize_quantity),
    FieldSpec("finishes", sanitize_textarea),
    FieldSpec("notes", sanitize_textarea),
    FieldSpec("delivery_country_code", sanitize_country_code, max_length=2),
    FieldSpec("delivery_postal_code", sanitize_text, max_length=20),
    FieldSpec("dimension_width", sanitize_dimension),
    FieldSpec("dimension_depth", sanitize_dimension),
    FieldSpec("dimension_height", sanitize_dimension),
    FieldSpec(
        "dimension_units_original",
        sanitize_key,
        max_length=20,
        allowed_values=_enum_values(DimensionUnit),
    ),
)

ITEM_UPDATE_WHITELIST: Mapping[str, FieldSpec] = MappingProxyType(
    {spec.name: spec for spec in _ITEM_FIELDS}
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class FieldValidator:
    """Validates raw update payloads against a fixed whitelist."""

    def __init__(self, whitelist: Mapping[str, FieldSpec] = ITEM_UPDATE_WHITELIST):
        self.whitelist = whitelist

    def validate(self, payload: Mapping[str, Any]) -> dict[str, FieldInput]:
        """Sanitize a payload into per-field patch states.

        Args:
            payload: Untyped field -> value map from the caller

        Returns:
            Field name -> ``CLEAR`` or ``Value`` for every supplied field, in
            whitelist order

        Raises:
            UnknownFieldError: Lists every key outside the whitelist
            MaxLengthExceededError: A string value is over its limit
            InvalidEnumValueError: A value is outside its allowed set
            InvalidFieldValueError: A value cannot be parsed for its field
        """
        unknown = [key for key in payload if key not in self.whitelist]
        if unknown:
            raise UnknownFieldError(unknown)

        sanitized: dict[str, FieldInput] = {}
        for name, spec in self.whitelist.items():
            if name not in payload:
                continue
            sanitized[name] = self._validate_field(spec, payload[name])
        return sanitized

    def parse(self, payload: Mapping[str, Any]) -> ItemPatch:
        """Validate a payload and map it onto an ``ItemPatch``."""
        return ItemPatch.from_inputs(self.validate(payload))

    def _validate_field(self, spec: FieldSpec, raw: Any) -> FieldInput:
        if _is_blank(raw):
            if spec.required:
                raise InvalidFieldValueError(spec.name, "cannot be empty")
            if spec.nullable:
                return CLEAR
            if raw is None:
                raise InvalidFieldValueError(spec.name, "cannot be null")

        try:
            value = spec.sanitizer(raw)
        except ValueError as exc:
            raise InvalidFieldValueError(spec.name, str(exc)) from exc

        if isinstance(value, str):
            if value == "":
                if spec.required:
                    raise InvalidFieldValueError(spec.name, "cannot be empty")
                if spec.nullable:
                    return CLEAR
            if spec.max_length is not None and len(value) > spec.max_length:
                raise MaxLengthExceededError(spec.name, spec.max_length)

        if spec.allowed_values is not None and value not in spec.allowed_values:
            raise InvalidEnumValueError(spec.name, raw, spec.allowed_values)

        return Value(value)

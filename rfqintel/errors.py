"""Request-level error taxonomy for item updates.

Every error carries a human-readable message and, where applicable, the list of
offending field names so a client can highlight inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


class ItemUpdateError(Exception):
    """Base class for all user-correctable item errors."""

    kind = "item_update_error"

    def __init__(self, message: str, fields: Sequence[str] | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields or [])

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, "fields": self.fields}


class UnknownFieldError(ItemUpdateError):
    """Payload contains one or more fields outside the update whitelist."""

    kind = "unknown_field"

    def __init__(self, fields: Sequence[str]):
        names = list(fields)
        super().__init__(f"Unknown fields not allowed: {', '.join(names)}", names)


class MaxLengthExceededError(ItemUpdateError):
    kind = "max_length_exceeded"

    def __init__(self, field: str, limit: int):
        super().__init__(
            f'Field "{field}" exceeds maximum length of {limit} characters.', [field]
        )
        self.field = field
        self.limit = limit


class InvalidEnumValueError(ItemUpdateError):
    kind = "invalid_enum_value"

    def __init__(self, field: str, value: Any, allowed: Sequence[str]):
        self.field = field
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(
            f'Invalid value {value!r} for "{field}". Allowed: {", ".join(self.allowed)}',
            [field],
        )


class InvalidFieldValueError(ItemUpdateError):
    """Value is well-formed text but not acceptable for the field (e.g. quantity)."""

    kind = "invalid_field_value"

    def __init__(self, field: str, reason: str):
        super().__init__(f'Invalid value for "{field}": {reason}', [field])
        self.field = field
        self.reason = reason


@dataclass(frozen=True)
class DimensionViolation:
    axis: str
    value: Any
    stage: str  # pre_conversion or post_conversion
    reason: str

    def describe(self) -> str:
        return f"dimension_{self.axis} {self.reason}"


class DimensionOutOfRangeError(ItemUpdateError):
    """One or more axes are <= 0 or exceed the cap, before or after conversion.

    All offending axes are reported together; ``axis``, ``value`` and ``stage``
    describe the first violation for callers that only need one.
    """

    kind = "dimension_out_of_range"

    PRE_CONVERSION = "pre_conversion"
    POST_CONVERSION = "post_conversion"

    def __init__(self, violations: Sequence[DimensionViolation]):
        if not violations:
            raise ValueError("DimensionOutOfRangeError requires at least one violation")
        self.violations = list(violations)
        super().__init__(
            "Invalid dimensions: " + ", ".join(v.describe() for v in self.violations),
            [f"dimension_{v.axis}" for v in self.violations],
        )

    @property
    def axis(self) -> str:
        return self.violations[0].axis

    @property
    def value(self) -> Any:
        return self.violations[0].value

    @property
    def stage(self) -> str:
        return self.violations[0].stage

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["violations"] = [
            {"axis": v.axis, "value": v.value, "stage": v.stage, "reason": v.reason}
            for v in self.violations
        ]
        return data


class NotFoundError(ItemUpdateError):
    kind = "not_found"

    def __init__(self, item_id: int):
        super().__init__(f"Item {item_id} not found.")
        self.item_id = item_id


class ForbiddenError(ItemUpdateError):
    kind = "forbidden"

    def __init__(self, item_id: int, user_id: int):
        super().__init__(f"User {user_id} may not modify item {item_id}.")
        self.item_id = item_id
        self.user_id = user_id


class PersistenceError(ItemUpdateError):
    """Opaque write failure; nothing from the update was applied."""

    kind = "persistence_error"

    def __init__(self, message: str = "Failed to update item."):
        super().__init__(message)


class ConfigurationError(Exception):
    """Configuration file is invalid or missing."""

    pass


class TimelineStepError(ValueError):
    """A timeline step transition was refused (locked, wrong status, unknown step)."""

    def __init__(self, order: int, message: str):
        super().__init__(f"Step {order}: {message}")
        self.order = order

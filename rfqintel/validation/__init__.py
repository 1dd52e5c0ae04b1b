"""Payload validation for item updates."""

from rfqintel.validation.fields import ITEM_UPDATE_WHITELIST, FieldSpec, FieldValidator
from rfqintel.validation.patch import CLEAR, UNSET, FieldInput, ItemPatch, Value

__all__ = [
    "CLEAR",
    "ITEM_UPDATE_WHITELIST",
    "UNSET",
    "FieldInput",
    "FieldSpec",
    "FieldValidator",
    "ItemPatch",
    "Value",
]

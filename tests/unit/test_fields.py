"""Unit tests for the update whitelist, sanitizers and typed patch."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from rfqintel.errors import (
    InvalidEnumValueError,
    InvalidFieldValueError,
    MaxLengthExceededError,
    UnknownFieldError,
)
from rfqintel.validation.fields import (
    ITEM_UPDATE_WHITELIST,
    FieldSpec,
    FieldValidator,
    sanitize_text,
    sanitize_textarea,
)
from rfqintel.validation.patch import CLEAR, UNSET, ItemPatch, Value, resolve


@pytest.fixture
def validator() -> FieldValidator:
    return FieldValidator()


class TestWhitelist:
    def test_whitelist_is_immutable(self):
        assert isinstance(ITEM_UPDATE_WHITELIST, MappingProxyType)
        with pytest.raises(TypeError):
            ITEM_UPDATE_WHITELIST["foo"] = FieldSpec("foo", str)  # type: ignore[index]

    def test_unknown_field_rejected(self, validator):
        with pytest.raises(UnknownFieldError) as exc_info:
            validator.validate({"foo": "bar"})
        assert exc_info.value.fields == ["foo"]

    def test_all_unknown_fields_listed_before_other_checks(self, validator):
        payload = {"title": "x" * 600, "foo": 1, "cbm": 2.0, "version": 3}
        with pytest.raises(UnknownFieldError) as exc_info:
            validator.validate(payload)
        assert exc_info.value.fields == ["foo", "cbm", "version"]
        assert exc_info.value.to_dict()["error"] == "unknown_field"

    @pytest.mark.parametrize(
        "derived",
        ["dimension_width_cm", "cbm", "timeline_type", "timeline_structure", "version", "meta"],
    )
    def test_derived_fields_are_not_updatable(self, validator, derived):
        with pytest.raises(UnknownFieldError):
            validator.validate({derived: "1"})

    def test_custom_whitelist(self):
        validator = FieldValidator(MappingProxyType({"title": FieldSpec("title", sanitize_text)}))
        with pytest.raises(UnknownFieldError):
            validator.validate({"notes": "hi"})


class TestFieldRules:
    def test_title_too_long(self, validator):
        with pytest.raises(MaxLengthExceededError) as exc_info:
            validator.validate({"title": "a" * 501})
        assert exc_info.value.limit == 500
        assert exc_info.value.fields == ["title"]

    def test_title_at_limit_accepted(self, validator):
        assert validator.validate({"title": "a" * 500})["title"] == Value("a" * 500)

    @pytest.mark.parametrize("title", ["", "   ", "<b></b>", None])
    def test_title_cannot_be_empty(self, validator, title):
        with pytest.raises(InvalidFieldValueError):
            validator.validate({"title": title})

    def test_text_is_sanitized(self, validator):
        result = validator.validate({"title": "  <i>Oak</i>\n  Table  "})
        assert result["title"] == Value("Oak Table")

    def test_textarea_keeps_line_breaks(self):
        assert sanitize_textarea("line one  \r\n<b>line</b> two") == "line one\nline two"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("status", "deleted"),
            ("item_type", "vehicle"),
            ("sourcing_type", "local"),
            ("dimension_units_original", "ft"),
        ],
    )
    def test_enum_values_enforced(self, validator, field, value):
        with pytest.raises(InvalidEnumValueError) as exc_info:
            validator.validate({field: value})
        assert exc_info.value.fields == [field]
        assert value in exc_info.value.message

    def test_enum_values_are_normalized(self, validator):
        result = validator.validate({"status": " Archived ", "dimension_units_original": "IN"})
        assert result["status"] == Value("archived")
        assert result["dimension_units_original"] == Value("in")

    def test_status_cannot_be_cleared(self, validator):
        with pytest.raises(InvalidEnumValueError):
            validator.validate({"status": ""})

    @pytest.mark.parametrize(
        "field",
        [
            "sourcing_type",
            "dimension_units_original",
            "product_category",
            "quantity",
            "delivery_country_code",
            "dimension_width",
        ],
    )
    def test_empty_string_clears_nullable_fields(self, validator, field):
        assert validator.validate({field: ""})[field] is CLEAR

    def test_description_empty_is_a_value(self, validator):
        assert validator.validate({"description": ""})["description"] == Value("")

    @pytest.mark.parametrize("raw,expected", [("3", 3), (12, 12), (4.0, 4)])
    def test_quantity_parsed(self, validator, raw, expected):
        assert validator.validate({"quantity": raw})["quantity"] == Value(expected)

    @pytest.mark.parametrize("raw", ["0", "-2", "two", 1.5, True])
    def test_quantity_rejected(self, validator, raw):
        with pytest.raises(InvalidFieldValueError) as exc_info:
            validator.validate({"quantity": raw})
        assert exc_info.value.fields == ["quantity"]

    def test_country_code_upper_cased(self, validator):
        assert validator.validate({"delivery_country_code": "us"})[
            "delivery_country_code"
        ] == Value("US")

    def test_country_code_must_be_two_letters(self, validator):
        with pytest.raises(InvalidFieldValueError):
            validator.validate({"delivery_country_code": "USA"})

    def test_postal_code_too_long(self, validator):
        with pytest.raises(MaxLengthExceededError):
            validator.validate({"delivery_postal_code": "9" * 21})

    def test_dimension_values_passed_through_for_normalizer(self, validator):
        result = validator.validate({"dimension_width": " 12.5 ", "dimension_depth": 0})
        assert result["dimension_width"] == Value("12.5")
        assert result["dimension_depth"] == Value(0)


class TestItemPatch:
    def test_parse_maps_to_tri_state(self, validator):
        patch = validator.parse({"title": "Desk", "dimension_height": ""})
        assert patch.title == Value("Desk")
        assert patch.dimension_height is CLEAR
        assert patch.description is UNSET
        assert patch.touches_dimensions

    def test_supplied_preserves_declaration_order(self):
        patch = ItemPatch(quantity=Value(2), title=Value("A"))
        assert list(patch.supplied()) == ["title", "quantity"]

    def test_empty_patch(self, validator):
        patch = validator.parse({})
        assert patch.is_empty
        assert not patch.touches_dimensions

    def test_unit_only_touches_dimensions(self):
        assert ItemPatch(dimension_units_original=Value("mm")).touches_dimensions

    def test_resolve(self):
        assert resolve(UNSET, "old") == "old"
        assert resolve(CLEAR, "old") is None
        assert resolve(Value("new"), "old") == "new"

    def test_unset_is_falsy_singleton(self):
        assert not UNSET
        assert repr(UNSET) == "UNSET"
        assert repr(CLEAR) == "CLEAR"

"""
Tests for the custom field type registry.

Covers the value rule of every field kind and the definition shape rules
(options required for choice kinds, unique option values).
"""

import pytest

from workboard.tracker.enums import FieldType
from workboard.tracker.errors import FieldShapeError, FieldValueError
from workboard.tracker.field_types import (
    FIELD_KINDS,
    get_field_kind,
    is_valid_value,
    requires_options,
    validate_definition_shape,
    validate_value,
)
from workboard.tracker.primitives import FieldSettings, SelectOption

DEPARTMENTS = [
    SelectOption(label="Engineering", value="eng"),
    SelectOption(label="Design", value="design"),
]


class TestRegistry:
    def test_every_field_type_is_registered(self):
        assert set(FIELD_KINDS) == set(FieldType)

    def test_only_choice_kinds_require_options(self):
        assert requires_options("select")
        assert requires_options("multi-select")
        assert not requires_options("text")
        assert not requires_options("priority")

    def test_unknown_type_is_a_shape_error(self):
        with pytest.raises(FieldShapeError) as exc_info:
            get_field_kind("color")
        assert "Unsupported field type" in exc_info.value.message
        assert exc_info.value.field == "type"


class TestDefinitionShape:
    def test_select_without_options_rejected(self):
        with pytest.raises(FieldShapeError):
            validate_definition_shape("select", [])

    def test_multi_select_without_options_rejected(self):
        with pytest.raises(FieldShapeError):
            validate_definition_shape("multi-select", None)

    def test_select_with_options_accepted(self):
        validate_definition_shape("select", DEPARTMENTS)

    def test_duplicate_option_values_rejected(self):
        options = [{"label": "A", "value": "x"}, {"label": "B", "value": "x"}]
        with pytest.raises(FieldShapeError) as exc_info:
            validate_definition_shape("select", options)
        assert "x" in exc_info.value.message

    def test_options_are_ignored_for_text(self):
        validate_definition_shape("text", None)


class TestValueRules:
    """Each kind accepts its own shape and rejects others."""

    @pytest.mark.parametrize("field_type", [t.value for t in FieldType])
    def test_none_always_accepted(self, field_type):
        validate_value(field_type, None, DEPARTMENTS)

    def test_text(self):
        validate_value("text", "hello")
        with pytest.raises(FieldValueError):
            validate_value("text", 42)

    def test_number(self):
        validate_value("number", 3)
        validate_value("number", 2.5)
        with pytest.raises(FieldValueError):
            validate_value("number", "3")

    def test_number_rejects_booleans(self):
        with pytest.raises(FieldValueError):
            validate_value("number", True)

    def test_number_bounds_from_settings(self):
        settings = FieldSettings(min=0, max=10)
        validate_value("number", 10, settings=settings)
        with pytest.raises(FieldValueError) as exc_info:
            validate_value("number", 11, settings=settings)
        assert "at most" in exc_info.value.message
        with pytest.raises(FieldValueError):
            validate_value("number", -1, settings={"min": 0})

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_number_rejects_non_finite(self, value):
        with pytest.raises(FieldValueError) as exc_info:
            validate_value("number", value)
        assert "finite" in exc_info.value.message
        assert not is_valid_value("number", value, settings={"min": 0, "max": 10})

    def test_date(self):
        validate_value("date", "2024-05-01")
        validate_value("date", "2024-05-01T10:30:00")
        with pytest.raises(FieldValueError):
            validate_value("date", "next tuesday")
        with pytest.raises(FieldValueError):
            validate_value("date", 20240501)

    def test_checkbox(self):
        validate_value("checkbox", False)
        with pytest.raises(FieldValueError):
            validate_value("checkbox", "true")

    def test_url(self):
        validate_value("url", "https://example.com/docs")
        with pytest.raises(FieldValueError):
            validate_value("url", "ftp://example.com")
        with pytest.raises(FieldValueError):
            validate_value("url", "example.com")

    def test_select_membership(self):
        validate_value("select", "eng", DEPARTMENTS)
        with pytest.raises(FieldValueError) as exc_info:
            validate_value("select", "qa", DEPARTMENTS, field_name="Department")
        assert "Department" in exc_info.value.message

    def test_select_options_as_stored_dicts(self):
        stored = [{"label": "Engineering", "value": "eng"}]
        validate_value("select", "eng", stored)
        assert not is_valid_value("select", "design", stored)

    def test_multi_select(self):
        validate_value("multi-select", ["eng", "design"], DEPARTMENTS)
        validate_value("multi-select", [], DEPARTMENTS)
        with pytest.raises(FieldValueError):
            validate_value("multi-select", "eng", DEPARTMENTS)
        with pytest.raises(FieldValueError):
            validate_value("multi-select", ["eng", "qa"], DEPARTMENTS)

    def test_priority(self):
        validate_value("priority", "urgent")
        with pytest.raises(FieldValueError):
            validate_value("priority", "critical")

    def test_status(self):
        validate_value("status", "in-review")
        with pytest.raises(FieldValueError):
            validate_value("status", "archived")

    def test_is_valid_value_never_raises(self):
        assert is_valid_value("number", 1)
        assert not is_valid_value("number", "one")
        assert not is_valid_value("no-such-type", "x")


class TestFieldSettings:
    def test_min_above_max_rejected(self):
        with pytest.raises(ValueError):
            FieldSettings(min=5, max=1)

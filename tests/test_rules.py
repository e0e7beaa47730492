"""Tests for the field rules run by Form.validate()."""

import logging
from datetime import date, datetime, time, timedelta

import pytest

from formgate.definition.types import FieldType
from formgate.exceptions import DefinitionError
from formgate.form.form import Form
from formgate.i18n.translator import CatalogTranslator
from formgate.validation.rules import (
    RuleEvaluator,
    compile_pattern,
    is_blank,
    is_empty,
    loosely_equal,
    submitted_options,
)


def make_form(definition: dict, values: dict | None = None, locale: str = "en") -> Form:
    """Helper to create a validated form."""
    form = Form(translator=CatalogTranslator(locale=locale), definition=definition)
    if values:
        form.set_all_values(values)
    return form.validate()


def codes(form: Form, name: str) -> list[str]:
    """Message tokens of the errors recorded for a field."""
    return [e.code for e in form.get_error_details() if e.field == name]


# =============================================================================
# Helpers
# =============================================================================


class TestValueHelpers:
    @pytest.mark.parametrize("value", [None, "", False])
    def test_blank_values(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, "0", [], " ", True])
    def test_non_blank_values(self, value):
        assert not is_blank(value)

    def test_empty_list_is_empty(self):
        assert is_empty([])
        assert is_empty({})
        assert not is_empty(["a"])

    def test_loose_equality(self):
        assert loosely_equal(1, "1")
        assert loosely_equal(None, "")
        assert not loosely_equal("a", "b")
        assert not loosely_equal(True, "1")

    def test_submitted_options(self):
        assert submitted_options(["a", "b"]) == ["a", "b"]
        assert submitted_options({0: "a", 1: "b"}) == ["a", "b"]
        assert submitted_options({"a": 1, "b": 2}) == ["a", "b"]

    def test_compile_delimited_pattern(self):
        pattern = compile_pattern("/^abc$/i")
        assert pattern.search("ABC")

    def test_compile_unicode_flag(self):
        assert compile_pattern("/^[a-z]+$/u").search("abc")

    def test_compile_unknown_flag_raises(self):
        with pytest.raises(DefinitionError, match="Unsupported regex flag"):
            compile_pattern("/^abc$/e")

    def test_compile_invalid_pattern_raises(self):
        with pytest.raises(DefinitionError, match="Invalid regex"):
            compile_pattern("[unclosed")

    def test_type_checks_cover_all_types(self):
        assert set(RuleEvaluator().type_checks) == set(FieldType)


# =============================================================================
# required
# =============================================================================


class TestRequired:
    def test_empty_string(self):
        form = make_form({"name": {"type": "string", "required": True}}, {"name": ""})
        assert form.get_errors() == {"name": ["name must not be empty"]}

    def test_never_written(self):
        form = make_form({"name": {"required": True}})
        assert codes(form, "name") == ["form.value_must_not_be_empty"]

    def test_false_is_empty(self):
        form = make_form({"terms": {"type": "bool", "required": True}}, {"terms": "no"})
        assert codes(form, "terms") == ["form.value_must_not_be_empty"]

    def test_zero_is_not_empty(self):
        form = make_form({"count": {"type": "int", "required": True}}, {"count": 0})
        assert form.is_valid()

    def test_default_satisfies_required(self):
        form = make_form({"bar": {"type": "string", "required": True, "default": "foo"}})
        assert form.is_valid()

    def test_caption_in_message(self):
        form = make_form({"name": {"required": True, "caption": "Your name"}})
        assert form.get_first_error() == "Your name must not be empty"


# =============================================================================
# min / max
# =============================================================================


class TestNumericBounds:
    def test_too_small(self):
        form = make_form({"age": {"type": "int", "min": 18}}, {"age": "17"})
        assert form.get_errors() == {"age": ["age is too small (min. 18)"]}

    def test_too_big(self):
        form = make_form({"number": {"type": "numeric", "max": 299}}, {"number": 300})
        assert codes(form, "number") == ["form.value_is_too_big"]

    def test_on_the_bound(self):
        form = make_form({"number": {"type": "numeric", "min": 299, "max": 299}}, {"number": 299})
        assert form.is_valid()

    def test_decimal_bounds(self):
        form = make_form({"t": {"type": "numeric", "min": 29.9, "max": 50.1}}, {"t": "29.8"})
        assert form.get_errors() == {"t": ["t is too small (min. 29.9)"]}

    def test_non_numeric_value_reported_by_type_rule_only(self):
        form = make_form({"t": {"type": "numeric", "min": 1}}, {"t": "bar"})
        assert codes(form, "t") == ["form.value_type_numeric"]

    def test_float_bound_uses_locale_decimal_point(self):
        form = make_form({"price": {"type": "float", "max": 1.5}}, {"price": "1,75"}, locale="de")
        assert form.get_errors() == {"price": ["price ist zu groß (max. 1.5)"]}

    def test_non_numeric_bound_raises(self):
        with pytest.raises(DefinitionError, match="must be a number"):
            make_form({"age": {"type": "int", "min": "ten"}}, {"age": 5})


class TestDateBounds:
    def test_future_date_with_day_offset(self):
        tomorrow = (date.today() + timedelta(days=1)).strftime("%Y-%m-%d")
        form = make_form({"birthday": {"type": "date", "max": 0}}, {"birthday": tomorrow})
        assert codes(form, "birthday") == ["form.value_is_too_far_in_the_future"]

    def test_past_date_with_day_offset(self):
        yesterday = (date.today() - timedelta(days=1)).strftime("%Y-%m-%d")
        form = make_form({"start": {"type": "date", "min": 0}}, {"start": yesterday})
        assert codes(form, "start") == ["form.value_is_too_far_in_the_past"]

    def test_day_offset_within_range(self):
        yesterday = (date.today() - timedelta(days=1)).strftime("%Y-%m-%d")
        form = make_form({"birthday": {"type": "date", "max": 0}}, {"birthday": yesterday})
        assert form.is_valid()

    def test_absolute_bound_message_uses_locale_pattern(self):
        form = make_form(
            {"otherday": {"type": "date", "max": "1981-01-22", "caption": "Other day"}},
            {"otherday": "22.01.1990"},
            locale="de",
        )
        assert form.get_errors() == {
            "otherday": ["Other day darf nicht nach dem 22.01.1981 liegen"]
        }

    def test_absolute_bound_min(self):
        form = make_form({"d": {"type": "date", "min": "1981-01-22"}}, {"d": "1960-01-22"})
        assert form.get_errors() == {"d": ["d must not be before 1981-01-22"]}

    def test_date_object_bound(self):
        form = make_form({"d": {"type": "date", "min": date(2000, 1, 1)}}, {"d": date(2001, 1, 1)})
        assert form.is_valid()

    def test_datetime_bound(self):
        form = make_form(
            {"start": {"type": "datetime", "max": "2020-01-01T12:00"}},
            {"start": "2020-01-01 12:30"},
        )
        assert codes(form, "start") == ["form.value_is_too_far_in_the_future"]

    def test_unparsable_date_reported_by_type_rule_only(self):
        form = make_form({"d": {"type": "date", "max": 0}}, {"d": "2024-02-30"})
        assert codes(form, "d") == ["form.value_type_date"]

    def test_invalid_bound_raises(self):
        with pytest.raises(DefinitionError, match="not an ISO date"):
            make_form({"d": {"type": "date", "min": "yesterday"}}, {"d": "2020-01-01"})


class TestLengthBounds:
    def test_string_too_long(self):
        form = make_form({"s": {"type": "string", "max": 10}}, {"s": "abcdefghijk"})
        assert form.get_errors() == {"s": ["s is too long (max. 10 characters)"]}

    def test_string_too_short(self):
        form = make_form({"s": {"type": "string", "min": 10}}, {"s": "abc"})
        assert codes(form, "s") == ["form.value_is_too_short_chars"]

    def test_length_counts_characters(self):
        form = make_form({"s": {"type": "string", "max": 3}}, {"s": "äöü"})
        assert form.is_valid()

    def test_list_too_many_elements(self):
        form = make_form({"l": {"type": "list", "max": 2}}, {"l": ["a", "b", "c"]})
        assert codes(form, "l") == ["form.value_max_options_selected"]

    def test_list_too_few_elements(self):
        form = make_form({"l": {"type": "list", "min": 2}}, {"l": ["a"]})
        assert codes(form, "l") == ["form.value_min_options_selected"]

    def test_quoted_bound(self):
        form = make_form({"name": {"type": "string", "max": "10"}}, {"name": "abc"})
        assert form.is_valid()

    def test_quoted_bound_still_applies(self):
        form = make_form({"name": {"type": "string", "max": "2"}}, {"name": "abc"})
        assert form.get_errors() == {"name": ["name is too long (max. 2 characters)"]}

    def test_non_numeric_bound_raises(self):
        with pytest.raises(DefinitionError, match='Bound of "name" must be a number'):
            make_form({"name": {"type": "string", "max": "ten"}}, {"name": "abc"})

    def test_quoted_list_bound(self):
        form = make_form({"l": {"type": "list", "max": "2"}}, {"l": ["a", "b", "c"]})
        assert codes(form, "l") == ["form.value_max_options_selected"]

    def test_time_field_has_no_length_bound(self):
        form = make_form({"start": {"type": "time", "min": "08:00"}}, {"start": "garbage"})
        assert form.get_errors() == {"start": ["start must be a valid time"]}

    def test_bool_value_has_no_length_bound(self):
        form = make_form({"agree": {"type": "bool", "max": 1}}, {"agree": True})
        assert form.is_valid()

    def test_untyped_value_uses_length(self):
        form = make_form({"foo": {"min": 3}}, {"foo": "ab"})
        assert codes(form, "foo") == ["form.value_is_too_short_chars"]


# =============================================================================
# matches
# =============================================================================


class TestMatches:
    definition = {
        "password": {"caption": "Password"},
        "password_repeat": {"matches": "password"},
        "username": {"matches": "!password"},
    }

    def test_must_be_the_same(self):
        form = make_form(self.definition, {"password": "secret", "password_repeat": "secrex"})
        assert form.get_errors() == {
            "password_repeat": ["password_repeat must be the same as Password"]
        }

    def test_must_not_be_the_same(self):
        form = make_form(
            self.definition,
            {"password": "secret", "password_repeat": "secret", "username": "secret"},
        )
        assert codes(form, "username") == ["form.value_must_not_be_the_same"]

    def test_loose_comparison(self):
        form = make_form(
            {"a": {}, "b": {"matches": "a"}},
            {"a": 1, "b": "1"},
        )
        assert form.is_valid()


# =============================================================================
# depends
# =============================================================================


class TestDepends:
    def test_required_if_dependency_set(self):
        form = make_form(
            {"a": {"caption": "Street"}, "b": {"depends": "a"}},
            {"a": "Main Street"},
        )
        assert form.get_errors() == {"b": ["b must not be empty"]}

    def test_not_required_if_dependency_empty(self):
        form = make_form({"a": {}, "b": {"depends": "a"}}, {"a": ""})
        assert form.is_valid()

    def test_depends_value(self):
        definition = {
            "sports": {"options": {"soccer": "Soccer", "chess": "Chess"}},
            "spacetravel": {"depends": "sports", "depends_value": "chess"},
        }
        assert make_form(definition, {"sports": "soccer"}).is_valid()
        assert codes(make_form(definition, {"sports": "chess"}), "spacetravel") == [
            "form.value_empty"
        ]

    def test_depends_value_empty_both_empty(self):
        definition = {"a": {}, "b": {"depends": "a", "depends_value_empty": True}}
        form = make_form(definition)
        assert form.get_errors() == {"b": ["b must not be empty, if a is empty"]}

    @pytest.mark.parametrize("b", [None, "", "x"])
    def test_depends_value_empty_dependency_set(self, b):
        definition = {"a": {}, "b": {"depends": "a", "depends_value_empty": True}}
        form = make_form(definition, {"a": "x", "b": b})
        assert form.is_valid()

    def test_empty_list_dependency_counts_as_empty(self):
        definition = {
            "a": {"type": "list"},
            "b": {"depends": "a", "depends_value_empty": True},
        }
        form = make_form(definition, {"a": [""]})
        assert codes(form, "b") == ["form.value_empty_dependency_empty"]

    def test_depends_last_option(self):
        definition = {
            "sports": {
                "caption": "Sport",
                "options": {"soccer": "Soccer", "chess": "Chess", "dance": "Dancing"},
            },
            "drink": {"caption": "Drink", "depends": "sports", "depends_last_option": True},
        }
        form = make_form(definition, {"sports": "dance"})
        assert form.get_errors() == {"drink": ['Drink must not be empty, if Sport is "Dancing"']}

        assert make_form(definition, {"sports": "chess"}).is_valid()
        assert make_form(definition, {"sports": "dance", "drink": True}).is_valid()

    def test_depends_first_option(self):
        definition = {
            "title": {"options": {1: "Mr", 2: "Mrs"}},
            "note": {"depends": "title", "depends_first_option": True},
        }
        assert codes(make_form(definition, {"title": "1"}), "note") == ["form.value_empty_depends"]
        assert make_form(definition, {"title": "2"}).is_valid()

    def test_option_dependency_without_options_is_skipped(self, caplog):
        definition = {
            "a": {},
            "b": {"depends": "a", "depends_first_option": True},
        }
        with caplog.at_level(logging.WARNING, logger="formgate.validation.rules"):
            form = make_form(definition, {"a": "x"})

        assert form.is_valid()
        assert "has no options" in caplog.text


# =============================================================================
# regex
# =============================================================================


class TestRegex:
    def test_no_match(self):
        form = make_form({"code": {"regex": "^[a-z]+$"}}, {"code": "abc1"})
        assert form.get_errors() == {"code": ["code is not valid"]}

    def test_delimited_pattern_with_flags(self):
        form = make_form({"code": {"regex": "/^[a-z]+$/i"}}, {"code": "ABC"})
        assert form.is_valid()

    def test_skipped_for_empty_value(self):
        form = make_form({"code": {"regex": "^[a-z]+$"}}, {"code": ""})
        assert form.is_valid()

    def test_unicode_flag_is_accepted(self):
        form = make_form({"code": {"type": "string", "regex": "/^[a-z]+$/u"}}, {"code": "abc"})
        assert form.is_valid()

    def test_unknown_flag_raises(self):
        with pytest.raises(DefinitionError, match="Unsupported regex flag 'D'"):
            make_form({"code": {"regex": "/^[a-z]+$/D"}}, {"code": "abc"})

    def test_skipped_for_list(self):
        form = make_form({"code": {"type": "list", "regex": "^[a-z]+$"}}, {"code": ["1"]})
        assert form.is_valid()


# =============================================================================
# options
# =============================================================================


class TestOptions:
    cars = {"bmw": "BMW", "hond": "Honda", "gmc": "General Motors"}

    def test_invalid_scalar_option(self):
        form = make_form({"car": {"options": self.cars}}, {"car": "audi"})
        assert form.get_errors() == {"car": ['car: "audi" is not a valid option']}

    def test_valid_scalar_option(self):
        assert make_form({"car": {"options": self.cars}}, {"car": "gmc"}).is_valid()

    def test_numeric_keys_compare_as_strings(self):
        form = make_form({"title": {"options": {1: "Mr", 2: "Mrs"}}}, {"title": "2"})
        assert form.is_valid()

    def test_indexed_list_submission(self):
        form = make_form({"cars": {"type": "list", "options": self.cars}}, {"cars": ["bmw", "hond"]})
        assert form.is_valid()

    def test_associative_list_submission(self):
        form = make_form(
            {"cars": {"type": "list", "options": self.cars}},
            {"cars": {"bmw": 1, "hond": 2}},
        )
        assert form.is_valid()

    def test_invalid_list_element(self):
        form = make_form({"cars": {"type": "list", "options": self.cars}}, {"cars": {"belinea": 1}})
        assert codes(form, "cars") == ["form.value_invalid_option"]

    def test_option_count_bounds(self):
        form = make_form(
            {"cars": {"type": "list", "options": self.cars, "min": 1, "max": 2}},
            {"cars": {"bmw": 1, "hond": 2, "gmc": 3}},
        )
        assert codes(form, "cars") == ["form.value_max_options_selected"]

    def test_option_bounds_require_list(self):
        form = make_form({"cars": {"options": self.cars, "max": 2}}, {"cars": "bmw"})
        assert codes(form, "cars") == ["form.value_must_be_list"]

    def test_quoted_option_count_bound(self):
        form = make_form(
            {"cars": {"type": "list", "options": self.cars, "max": "2"}},
            {"cars": ["bmw", "hond", "gmc"]},
        )
        assert codes(form, "cars") == ["form.value_max_options_selected"]

    def test_submitted_placeholder_is_not_substituted(self):
        form = make_form({"color": {"caption": "Color", "options": {"red": "Red"}}}, {"color": "%field%"})
        assert form.get_errors() == {"color": ['Color: "%field%" is not a valid option']}

    def test_scalar_value_for_list_type(self):
        form = make_form(
            {"sports": {"type": "list", "options": {"soccer": "Soccer"}}},
            {"sports": "running"},
        )
        assert codes(form, "sports") == ["form.value_invalid_option", "form.value_type_list"]


# =============================================================================
# type
# =============================================================================


class TestTypes:
    @pytest.mark.parametrize(
        ("field_type", "value"),
        [
            ("int", "12"),
            ("int", 12),
            ("numeric", "-1.5e3"),
            ("numeric", 31),
            ("float", "1.25"),
            ("scalar", "abc"),
            ("list", ["a"]),
            ("bool", "yes"),
            ("string", "abc"),
            ("email", "xyz@ibm.com"),
            ("ip", "192.168.0.1"),
            ("ip", "::1"),
            ("url", "https://example.com/path?q=1"),
            ("date", "1990-01-22"),
            ("date", date(2000, 1, 1)),
            ("datetime", "1981-01-22 12:34"),
            ("datetime", datetime(2000, 1, 1, 8, 0)),
            ("time", "15:12"),
            ("time", time(15, 12)),
            ("switch", "1"),
            ("switch", 0),
        ],
    )
    def test_valid(self, field_type, value):
        form = make_form({"f": {"type": field_type}}, {"f": value})
        assert form.is_valid(), form.get_errors()

    @pytest.mark.parametrize(
        ("field_type", "value"),
        [
            ("int", "1.5"),
            ("int", "-1"),
            ("numeric", "bar"),
            ("float", "1,5"),
            ("scalar", ["a"]),
            ("string", 12),
            ("email", "xyz"),
            ("ip", "300.1.1.1"),
            ("url", "example.com"),
            ("url", "http://exa mple.com"),
            ("date", "22.01.1990"),
            ("datetime", "1981-01-22"),
            ("time", "25:00"),
            ("switch", "2"),
        ],
    )
    def test_invalid(self, field_type, value):
        form = make_form({"f": {"type": field_type}}, {"f": value})
        assert len(codes(form, "f")) == 1
        assert codes(form, "f")[0].startswith("form.value_type_")

    def test_int_message_token(self):
        form = make_form({"f": {"type": "int"}}, {"f": "x"})
        assert codes(form, "f") == ["form.value_type_integer"]

    def test_float_with_locale_decimal_point(self):
        form = make_form({"vehicle": {"type": "float"}}, {"vehicle": "1,1234"}, locale="de")
        assert form.is_valid()

    def test_float_with_type_params(self):
        form = make_form(
            {"vehicle": {"type": "float", "type_params": {"decimal": ","}}},
            {"vehicle": "1,1234"},
        )
        assert form.is_valid()

    def test_float_type_params_without_decimal_raises(self):
        with pytest.raises(DefinitionError, match="decimal"):
            make_form(
                {"vehicle": {"type": "float", "type_params": {"precision": 2}}},
                {"vehicle": "1.5"},
            )

    def test_untyped_field_has_no_type_rule(self):
        form = make_form({"anything": {}}, {"anything": ["a", "b"]})
        assert form.is_valid()

    def test_empty_value_skips_type_rule(self):
        form = make_form({"email": {"type": "email"}}, {"email": ""})
        assert form.is_valid()


# =============================================================================
# Rule order
# =============================================================================


class TestRuleOrder:
    def test_errors_follow_rule_order(self):
        form = make_form(
            {"pin": {"type": "int", "min": 4, "regex": "^[0-9]+$", "caption": "PIN"}},
            {"pin": "ab"},
        )
        # min on a non-numeric int is left to the type rule
        assert codes(form, "pin") == ["form.value_not_valid_regex", "form.value_type_integer"]

    def test_string_bound_before_regex(self):
        form = make_form({"code": {"type": "string", "min": 5, "regex": "^[0-9]+$"}}, {"code": "ab"})
        assert codes(form, "code") == ["form.value_is_too_short_chars", "form.value_not_valid_regex"]

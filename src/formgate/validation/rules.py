"""Field rules: the checks run for every field during Form.validate().

Rules run in a fixed order, and the order of the resulting messages is part
of the contract (``Form.get_first_error()`` relies on it):

    required -> min -> max -> matches -> depends -> regex -> options -> type

Rules never raise for invalid input. They report errors through the form
(``add_error``), which translates the message token. Misconfigured
definitions (unknown type, malformed bounds or patterns) raise
DefinitionError.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Any, Callable, Mapping, Protocol

from formgate.definition.types import FieldDefinition, FieldType
from formgate.exceptions import DefinitionError
from formgate.validation import formats

logger = logging.getLogger(__name__)


class RuleTarget(Protocol):
    """The parts of a form the rules read from and report to."""

    def get_value(self, name: str) -> Any:
        ...

    def get_field_definition(self, name: str) -> FieldDefinition:
        ...

    def get_field_caption(self, name: str) -> str:
        ...

    def translate(self, token: str, params: Mapping[str, Any] | None = None) -> str:
        ...

    def add_error(self, name: str, token: str, params: Mapping[str, Any] | None = None) -> Any:
        ...


TypeCheck = Callable[[RuleTarget, FieldDefinition, Any], bool]

TYPE_TOKENS: dict[FieldType, str] = {
    field_type: f"form.value_type_{field_type.value}" for field_type in FieldType
}
TYPE_TOKENS[FieldType.INT] = "form.value_type_integer"


# =============================================================================
# Value helpers
# =============================================================================


def is_blank(value: Any) -> bool:
    """True for values that count as "no input": None, "" and False."""
    return value is None or value is False or (isinstance(value, str) and value == "")


def is_empty(value: Any) -> bool:
    """Like is_blank(), but an empty list counts as empty too."""
    return is_blank(value) or (formats.is_list(value) and len(value) == 0)


def loosely_equal(a: Any, b: Any) -> bool:
    """Compare submitted values the way they arrive: 1 equals "1"."""
    if is_blank(a) and is_blank(b):
        return True
    if (
        formats.is_scalar(a)
        and formats.is_scalar(b)
        and not isinstance(a, bool)
        and not isinstance(b, bool)
    ):
        return str(a) == str(b)
    return a == b


def submitted_options(value: list | tuple | dict) -> list[Any]:
    """Selected option keys of a list value.

    Indexed submissions (``["a", "b"]`` or ``{0: "a"}``) carry the keys as
    values, associative ones (``{"a": 1, "b": 2}``) as keys.
    """
    if isinstance(value, dict):
        return [option if isinstance(key, int) else key for key, option in value.items()]
    return list(value)


_DELIMITED_PATTERN = re.compile(r"^/(?P<pattern>.*)/(?P<flags>[a-zA-Z]*)$", re.DOTALL)

# "u" is a no-op, str patterns always match Unicode
_FLAG_MAP = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE, "u": 0}


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a regex; ``/pattern/flags`` notation is accepted.

    Flags are ``i``, ``m``, ``s``, ``x`` and ``u``. Any other flag, such as
    ``D``, raises DefinitionError.
    """
    flags = 0
    match = _DELIMITED_PATTERN.match(pattern)
    if match:
        for flag in match.group("flags"):
            if flag not in _FLAG_MAP:
                raise DefinitionError(f"Unsupported regex flag {flag!r} in {pattern!r}")
            flags |= _FLAG_MAP[flag]
        pattern = match.group("pattern")
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise DefinitionError(f"Invalid regex {pattern!r}: {exc}") from exc


# =============================================================================
# Rule Evaluator
# =============================================================================


class RuleEvaluator:
    """Runs all field rules against a form.

    The evaluator holds no state between calls. Subclasses can add rules by
    extending ``rules()`` or support more types via ``type_checks``.
    """

    def __init__(self) -> None:
        self.type_checks: dict[FieldType, TypeCheck] = {
            FieldType.INT: lambda form, field, value: formats.is_integer(value),
            FieldType.NUMERIC: lambda form, field, value: formats.is_numeric(value),
            FieldType.FLOAT: self.check_float,
            FieldType.SCALAR: lambda form, field, value: formats.is_scalar(value),
            FieldType.LIST: lambda form, field, value: formats.is_list(value),
            FieldType.BOOL: lambda form, field, value: isinstance(value, bool),
            FieldType.STRING: lambda form, field, value: isinstance(value, str),
            FieldType.EMAIL: lambda form, field, value: formats.is_email(value),
            FieldType.IP: lambda form, field, value: formats.is_ip(value),
            FieldType.URL: lambda form, field, value: formats.is_url(value),
            FieldType.DATE: self.check_temporal,
            FieldType.DATETIME: self.check_temporal,
            FieldType.TIME: self.check_temporal,
            FieldType.SWITCH: lambda form, field, value: formats.is_switch(value),
        }

    def rules(self) -> list[Callable[[RuleTarget, FieldDefinition, Any], None]]:
        return [
            self.validate_required,
            self.validate_min,
            self.validate_max,
            self.validate_matches,
            self.validate_depends,
            self.validate_regex,
            self.validate_options,
            self.validate_type,
        ]

    def validate_field(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        """Apply all rules to one field."""
        for rule in self.rules():
            rule(form, field, value)

    # -------------------------------------------------------------------------
    # required
    # -------------------------------------------------------------------------

    def validate_required(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if field.required and is_blank(value):
            form.add_error(field.name, "form.value_must_not_be_empty")

    # -------------------------------------------------------------------------
    # min / max
    # -------------------------------------------------------------------------

    def validate_min(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if field.options is None and field.min is not None and not is_blank(value):
            self._check_bound(form, field, value, field.min, lower=True)

    def validate_max(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if field.options is None and field.max is not None and not is_blank(value):
            self._check_bound(form, field, value, field.max, lower=False)

    def _check_bound(
        self,
        form: RuleTarget,
        field: FieldDefinition,
        value: Any,
        limit: Any,
        lower: bool,
    ) -> None:
        field_type = field.type

        if field_type is not None and field_type.is_numeric:
            decimal = self._decimal_point(form, field) if field_type is FieldType.FLOAT else "."
            number = formats.to_number(value, decimal)
            if number is None:
                return  # Type rule reports this
            bound = formats.to_number(limit)
            if bound is None:
                raise DefinitionError(f'Bound of "{field.name}" must be a number, got {limit!r}')
            if lower and number < bound:
                form.add_error(field.name, "form.value_is_too_small", {"%limit%": limit})
            elif not lower and number > bound:
                form.add_error(field.name, "form.value_is_too_big", {"%limit%": limit})

        elif field_type in (FieldType.DATE, FieldType.DATETIME):
            if not isinstance(value, date):
                return  # Unparsed input, type rule reports this
            moment = self._normalize_moment(value, field_type)
            bound = self._date_limit(field, limit, lower, moment)
            pattern = form.translate(f"form.{field_type.value}")
            if lower and moment < bound:
                form.add_error(
                    field.name,
                    "form.value_is_too_far_in_the_past",
                    {"%limit%": bound.strftime(pattern)},
                )
            elif not lower and moment > bound:
                form.add_error(
                    field.name,
                    "form.value_is_too_far_in_the_future",
                    {"%limit%": bound.strftime(pattern)},
                )

        elif field_type is FieldType.TIME:
            return  # Time of day has no bounds

        elif field_type is FieldType.LIST:
            if not formats.is_list(value):
                return
            bound = self._count_limit(field, limit)
            if lower and len(value) < bound:
                form.add_error(field.name, "form.value_min_options_selected", {"%limit%": limit})
            elif not lower and len(value) > bound:
                form.add_error(field.name, "form.value_max_options_selected", {"%limit%": limit})

        elif formats.is_scalar(value) and not isinstance(value, bool):
            bound = self._count_limit(field, limit)
            length = len(str(value))
            if lower and length < bound:
                form.add_error(field.name, "form.value_is_too_short_chars", {"%limit%": limit})
            elif not lower and length > bound:
                form.add_error(field.name, "form.value_is_too_long_chars", {"%limit%": limit})

    @staticmethod
    def _count_limit(field: FieldDefinition, limit: Any) -> float:
        """Bound for a length or element count."""
        bound = formats.to_number(limit)
        if bound is None:
            raise DefinitionError(f'Bound of "{field.name}" must be a number, got {limit!r}')
        return bound

    @staticmethod
    def _normalize_moment(value: date, field_type: FieldType) -> date:
        if field_type is FieldType.DATE:
            return value.date() if isinstance(value, datetime) else value
        if not isinstance(value, datetime):
            return datetime.combine(value, time())
        return value

    @staticmethod
    def _date_limit(field: FieldDefinition, limit: Any, lower: bool, moment: date) -> date:
        """Absolute bound for a date field.

        An integer bound is a number of days before (min) or after (max) now.
        """
        tzinfo = moment.tzinfo if isinstance(moment, datetime) else None

        if isinstance(limit, bool):
            raise DefinitionError(f'Bound of "{field.name}" must be a date or a number of days')
        if isinstance(limit, int):
            offset = timedelta(days=limit)
            now = datetime.now(tzinfo)
            result = now - offset if lower else now + offset
        elif isinstance(limit, datetime):
            result = limit
        elif isinstance(limit, date):
            result = datetime.combine(limit, time())
        elif isinstance(limit, str):
            try:
                result = datetime.fromisoformat(limit)
            except ValueError:
                raise DefinitionError(
                    f'Bound of "{field.name}" is not an ISO date: {limit!r}'
                ) from None
        else:
            raise DefinitionError(f'Bound of "{field.name}" must be a date or a number of days')

        if field.type is FieldType.DATE:
            return result.date()
        if tzinfo is not None and result.tzinfo is None:
            return result.replace(tzinfo=tzinfo)
        if tzinfo is None and result.tzinfo is not None:
            return result.replace(tzinfo=None)
        return result

    # -------------------------------------------------------------------------
    # matches
    # -------------------------------------------------------------------------

    def validate_matches(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if not field.matches:
            return

        other = field.matches
        must_differ = other.startswith("!")
        if must_differ:
            other = other[1:]

        same = loosely_equal(value, form.get_value(other))
        params = {"%other_field%": form.get_field_caption(other)}

        if must_differ and same:
            form.add_error(field.name, "form.value_must_not_be_the_same", params)
        elif not must_differ and not same:
            form.add_error(field.name, "form.value_must_be_the_same", params)

    # -------------------------------------------------------------------------
    # depends
    # -------------------------------------------------------------------------

    def validate_depends(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if not field.depends:
            return

        dependency = field.depends
        dependency_value = form.get_value(dependency)

        if not is_empty(dependency_value) and is_empty(value) and not field.depends_value_empty:
            if field.depends_first_option or field.depends_last_option:
                self._check_option_dependency(form, field, dependency, dependency_value)
            elif field.depends_value is None or loosely_equal(dependency_value, field.depends_value):
                form.add_error(
                    field.name,
                    "form.value_empty",
                    {"%other_field%": form.get_field_caption(dependency)},
                )
        elif is_empty(dependency_value) and is_empty(value) and field.depends_value_empty:
            form.add_error(
                field.name,
                "form.value_empty_dependency_empty",
                {"%other_field%": form.get_field_caption(dependency)},
            )

    def _check_option_dependency(
        self,
        form: RuleTarget,
        field: FieldDefinition,
        dependency: str,
        dependency_value: Any,
    ) -> None:
        options = form.get_field_definition(dependency).options
        if not options:
            logger.warning(
                "Field %s depends on the %s option of %s, which has no options; rule skipped",
                field.name,
                "first" if field.depends_first_option else "last",
                dependency,
            )
            return

        keys = list(options)
        key = keys[0] if field.depends_first_option else keys[-1]

        if loosely_equal(dependency_value, key):
            form.add_error(
                field.name,
                "form.value_empty_depends",
                {
                    "%other_field%": form.get_field_caption(dependency),
                    "%value%": form.translate(str(options[key])),
                },
            )

    # -------------------------------------------------------------------------
    # regex
    # -------------------------------------------------------------------------

    def validate_regex(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if not field.regex or not formats.is_scalar(value) or is_blank(value):
            return
        if not compile_pattern(field.regex).search(str(value)):
            form.add_error(field.name, "form.value_not_valid_regex")

    # -------------------------------------------------------------------------
    # options
    # -------------------------------------------------------------------------

    def validate_options(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if field.options is None or is_blank(value):
            return

        if field.min is not None or field.max is not None:
            if not formats.is_list(value):
                form.add_error(field.name, "form.value_must_be_list")
            else:
                if field.min is not None and len(value) < self._count_limit(field, field.min):
                    form.add_error(
                        field.name, "form.value_min_options_selected", {"%limit%": field.min}
                    )
                if field.max is not None and len(value) > self._count_limit(field, field.max):
                    form.add_error(
                        field.name, "form.value_max_options_selected", {"%limit%": field.max}
                    )

        allowed = {str(key) for key in field.options}
        selected = submitted_options(value) if formats.is_list(value) else [value]

        for option in selected:
            if not formats.is_scalar(option) or str(option) not in allowed:
                form.add_error(field.name, "form.value_invalid_option", {"%option%": option})

    # -------------------------------------------------------------------------
    # type
    # -------------------------------------------------------------------------

    def validate_type(self, form: RuleTarget, field: FieldDefinition, value: Any) -> None:
        if field.type is None or is_blank(value):
            return

        check = self.type_checks.get(field.type)
        if check is None:
            raise DefinitionError(f"Invalid field type: {field.type.value}")

        if not check(form, field, value):
            form.add_error(field.name, TYPE_TOKENS[field.type])

    def check_float(self, form: RuleTarget, field: FieldDefinition, value: Any) -> bool:
        return formats.parse_float(value, self._decimal_point(form, field)) is not None

    def check_temporal(self, form: RuleTarget, field: FieldDefinition, value: Any) -> bool:
        if formats.is_temporal(value):
            return True
        pattern = form.translate(f"form.{field.type.value}")
        return formats.parse_temporal(value, field.type, pattern) is not None

    @staticmethod
    def _decimal_point(form: RuleTarget, field: FieldDefinition) -> str:
        if field.type_params is None:
            return form.translate("form.decimal_point")
        decimal = field.type_params.get("decimal")
        if not isinstance(decimal, str) or not decimal:
            raise DefinitionError(f'type_params of "{field.name}" must contain the key "decimal"')
        return decimal

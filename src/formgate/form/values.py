"""Definition-bound storage of coerced field values."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from formgate.definition.types import DefinitionSnapshot, FieldDefinition, FieldType
from formgate.exceptions import DefinitionError
from formgate.validation import formats
from formgate.validation.types import FieldValue

_TRUE_STRINGS = ("1", "yes", "true")
_FALSE_STRINGS = ("0", "no", "false")


def convert_to_bool(value: Any) -> bool:
    """Coerce submitted input to a boolean.

    Booleans pass through, lists are true if not empty, the strings
    "1"/"yes"/"true" and "0"/"no"/"false" are recognized, anything else
    falls back to the truthiness of its string form ("" and None are false).
    """
    if isinstance(value, bool):
        return value
    if formats.is_list(value):
        return len(value) > 0

    text = "" if value is None else str(value)
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return bool(text)


def optional_default(field: FieldDefinition) -> FieldValue:
    """Value used for an optional field that is missing from the input."""
    if field.default is not None:
        return field.default
    if field.type is FieldType.LIST:
        return []
    if field.type is FieldType.BOOL:
        return False
    return None


class ValueStore:
    """Current values of the fields of one form.

    Only names present in the definition can be written. Reading a field that
    was never written returns its declared default.
    """

    def __init__(
        self,
        definition_getter: Callable[[], DefinitionSnapshot],
        date_pattern: Callable[[FieldType], str],
        on_change: Callable[[], Any] | None = None,
    ):
        self._definition_getter = definition_getter
        self._date_pattern = date_pattern
        self._on_change = on_change
        self._values: dict[str, FieldValue] = {}

    @property
    def definition(self) -> DefinitionSnapshot:
        return self._definition_getter()

    def coerce(self, field: FieldDefinition, value: Any) -> FieldValue:
        """Normalize raw input according to the field type."""
        field_type = field.type

        if field_type is FieldType.LIST and isinstance(value, (list, tuple)) and list(value) == [""]:
            value = []

        if field_type is FieldType.BOOL:
            value = convert_to_bool(value)

        if (
            field_type is not None
            and field_type.is_temporal
            and value not in (None, "")
            and not formats.is_temporal(value)
        ):
            parsed = formats.parse_temporal(value, field_type, self._date_pattern(field_type))
            if parsed is not None:
                value = parsed

        if field_type is not FieldType.STRING and isinstance(value, str) and value == "":
            value = None

        return value

    def write(self, name: str, value: Any) -> None:
        if name not in self.definition:
            raise DefinitionError(f'No form field defined for "{name}"')

        self._values[name] = self.coerce(self.definition.get(name), value)

        if self._on_change is not None:
            self._on_change()

    def read(self, name: str) -> FieldValue:
        field = self.definition.get(name)
        if name in self._values:
            return self._values[name]
        return field.default

    def is_set(self, name: str) -> bool:
        if name not in self.definition:
            return False
        return self.read(name) is not None

    def is_writable(self, name: str) -> bool:
        return not self.definition.get(name).readonly

    def is_optional(self, name: str) -> bool:
        return self.definition.get(name).optional

    def discard_unknown(self) -> None:
        """Forget values of fields that are no longer defined."""
        self._values = {k: v for k, v in self._values.items() if k in self.definition}

    # -------------------------------------------------------------------------
    # Bulk writes
    # -------------------------------------------------------------------------

    def set_all(self, values: Mapping[str, Any]) -> None:
        """Write every given value; unknown names raise DefinitionError."""
        for name, value in values.items():
            self.write(name, value)

    def set_defined(
        self,
        values: Mapping[str, Any],
        writable_only: bool = False,
        page: Any = None,
    ) -> None:
        """Write a value for every defined field (optionally writable / on a page).

        Optional fields missing from ``values`` get their type default, any
        other missing field raises DefinitionError.
        """
        values = dict(values)

        for field in self.definition:
            if page is not None and (field.page is None or str(field.page) != str(page)):
                continue
            if writable_only and field.readonly:
                continue

            if field.optional and field.name not in values:
                values[field.name] = optional_default(field)

            if field.name not in values:
                raise DefinitionError(f'Value is missing for "{field.name}"')

            self.write(field.name, values[field.name])

    def set_writable(self, values: Mapping[str, Any]) -> None:
        """Write only values of defined, writable fields; skip everything else."""
        for name, value in values.items():
            if name in self.definition and self.is_writable(name):
                self.write(name, value)

"""The Form: field definitions, values, validation and read-side views.

A form validates user input of any origin (HTTP form posts, JSON payloads,
CLI arguments) against a whitelist of field rules and returns localized
messages. Forms are request scoped; an instance is not safe for concurrent
use.

Usage:
    form = Form(translator=CatalogTranslator(locale="de"))
    form.set_definition({
        "firstname": {"type": "string", "min": 2, "max": 10, "caption": "Vorname"},
        "email": {"type": "email", "required": True},
    })
    form.set_defined_writable_values(request_data)

    if not form.validate().is_valid():
        return form.get_errors()

Forms can also be subclassed; ``init()`` receives the constructor params and
is the place to set the definition:

    class UserForm(Form):
        def init(self, params):
            self.set_definition({...})
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from formgate.definition.types import DefinitionSnapshot, FieldDefinition, FieldType
from formgate.exceptions import DefinitionError, OptionsError
from formgate.form.session import ValidationSession
from formgate.form.values import ValueStore
from formgate.i18n.translator import CatalogTranslator, Translator
from formgate.options.supplier import OptionsSupplier
from formgate.validation import formats
from formgate.validation.rules import RuleEvaluator
from formgate.validation.types import ErrorCollector, FieldValue, ValidationError

logger = logging.getLogger(__name__)


class Form:
    """A form instance: definition registry, value store, errors and session."""

    default_option_label = "form.please_select"

    def __init__(
        self,
        translator: Translator | None = None,
        options: OptionsSupplier | None = None,
        params: Mapping[str, Any] | None = None,
        evaluator: RuleEvaluator | None = None,
        definition: Mapping[str, Any] | DefinitionSnapshot | None = None,
        groups: Mapping[str, list[str]] | None = None,
    ):
        self.translator: Translator = translator or CatalogTranslator()
        self.options_supplier = options
        self.evaluator = evaluator or RuleEvaluator()
        self.params: dict[str, Any] = dict(params or {})

        self._definition = DefinitionSnapshot()
        self._groups: dict[str, list[str]] = {}
        self._errors = ErrorCollector()
        self._session = ValidationSession()
        self._values = ValueStore(
            definition_getter=lambda: self._definition,
            date_pattern=self._date_pattern,
            on_change=self.clear_errors,
        )

        if definition is not None:
            self.set_definition(definition)
        if groups is not None:
            self.set_groups(groups)

        self.init(self.params)

    def init(self, params: dict[str, Any]) -> None:
        """Initialization hook for subclasses (set the definition here)."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} fields={self._definition.names()!r}>"

    # =========================================================================
    # Parameters, locale and translation
    # =========================================================================

    def get_param(self, name: str, default: Any = None) -> Any:
        """Return an initialization parameter, or ``default`` if it was not passed."""
        return self.params.get(name, default)

    @property
    def locale(self) -> str:
        return self.translator.locale

    @locale.setter
    def locale(self, locale: str) -> None:
        self.translator.locale = locale

    def translate(self, token: str, params: Mapping[str, Any] | None = None) -> str:
        return self.translator.translate(token, params)

    def get_field_caption(self, name: str) -> str:
        """Translated caption of a field, or its name if it has none."""
        caption = self.get_field_definition(name).caption
        if caption:
            return self.translate(caption)
        return name

    def _date_pattern(self, field_type: FieldType) -> str:
        return self.translate(f"form.{field_type.value}")

    # =========================================================================
    # Option lists
    # =========================================================================

    def get_options_supplier(self) -> OptionsSupplier:
        if self.options_supplier is None:
            raise OptionsError("No options supplier set")
        return self.options_supplier

    def options(self, list_name: str) -> dict[Any, Any]:
        """Return an option list, e.g. for ``"options": form.options("countries")``."""
        return self.get_options_supplier().get(list_name)

    def options_with_default(self, list_name: str, default_label: str = "") -> dict[Any, Any]:
        """Option list preceded by an empty "please select" entry."""
        label = default_label or self.default_option_label
        return {"": self.translate(label), **self.options(list_name)}

    # =========================================================================
    # Definition
    # =========================================================================

    def set_definition(self, definition: Mapping[str, Any] | DefinitionSnapshot) -> Form:
        if not isinstance(definition, DefinitionSnapshot):
            definition = DefinitionSnapshot.from_dict(definition)
        self._definition = definition
        self._values.discard_unknown()
        return self

    def get_definition(self) -> DefinitionSnapshot:
        if len(self._definition) == 0:
            raise DefinitionError("Form definition is empty.")
        return self._definition

    def get_field_definition(self, name: str) -> FieldDefinition:
        return self._definition.get(name)

    def get_field_property(self, name: str, prop: str) -> Any:
        return self._definition.get(name).get(prop)

    def add_definition(self, name: str, properties: Mapping[str, Any] | None = None) -> Form:
        self._definition = self._definition.add(name, properties)
        return self

    def change_definition(self, name: str, changes: Mapping[str, Any]) -> Form:
        """Merge property changes into a field definition (``None`` removes a property)."""
        self._definition = self._definition.apply_patch(name, changes)
        return self

    def set_groups(self, groups: Mapping[str, list[str]]) -> Form:
        """Set field groups, e.g. ``{"person": ["firstname", "lastname"]}``."""
        self._groups = {name: list(members) for name, members in groups.items()}
        return self

    def get_groups(self) -> dict[str, list[str]]:
        return {name: list(members) for name, members in self._groups.items()}

    def get_hash(self) -> str:
        """Content hash of the definition, e.g. for caching rendered forms."""
        return self.get_definition().content_hash()

    def is_writable(self, name: str) -> bool:
        return self._values.is_writable(name)

    def is_optional(self, name: str) -> bool:
        return self._values.is_optional(name)

    # =========================================================================
    # Values
    # =========================================================================

    def set_value(self, name: str, value: Any) -> Form:
        self._values.write(name, value)
        return self

    def get_value(self, name: str) -> FieldValue:
        return self._values.read(name)

    def has_value(self, name: str) -> bool:
        """True if the field exists and its value is not None."""
        return self._values.is_set(name)

    def set_all_values(self, values: Mapping[str, Any]) -> Form:
        """Set all values; fields must exist, readonly is ignored."""
        self._values.set_all(values)
        return self

    def set_defined_values(self, values: Mapping[str, Any]) -> Form:
        """Set values for every defined field (missing non-optional values raise)."""
        self._values.set_defined(values)
        return self

    def set_writable_values(self, values: Mapping[str, Any]) -> Form:
        """Set the given values of writable fields, ignoring everything else."""
        self._values.set_writable(values)
        return self

    def set_defined_writable_values(self, values: Mapping[str, Any]) -> Form:
        """Set values for every defined, writable field (recommended for user input)."""
        self._values.set_defined(values, writable_only=True)
        return self

    def set_writable_values_on_page(self, values: Mapping[str, Any], page: Any) -> Form:
        """Like set_defined_writable_values(), limited to the fields on ``page``."""
        self._values.set_defined(values, writable_only=True, page=page)
        return self

    def get_values(self) -> dict[str, FieldValue]:
        return {name: self.get_value(name) for name in self._definition.names()}

    def get_writable_values(self) -> dict[str, FieldValue]:
        return {
            field.name: self.get_value(field.name)
            for field in self._definition
            if not field.readonly
        }

    def get_values_by_page(self) -> dict[Any, dict[str, FieldValue]]:
        result: dict[Any, dict[str, FieldValue]] = {}
        for field in self._definition:
            if field.page:
                result.setdefault(field.page, {})[field.name] = self.get_value(field.name)
        return result

    def get_values_by_tag(self, tag: str) -> dict[str, FieldValue]:
        return {
            field.name: self.get_value(field.name)
            for field in self._definition
            if tag in field.tags
        }

    # =========================================================================
    # Export
    # =========================================================================

    def get_field_as_dict(self, name: str) -> dict[str, Any]:
        """Definition and value of a field as a JSON compatible dict (for templates)."""
        field = self.get_field_definition(name)
        result = field.to_dict()

        result["name"] = name
        result["caption"] = self.translate(field.caption or name)

        value = self.get_value(name)
        if field.type is not None and field.type.is_temporal and formats.is_temporal(value):
            value = value.strftime(self._date_pattern(field.type))

        result["value"] = value
        result["uid"] = "id" + uuid.uuid4().hex[:13]

        if field.options is not None:
            result["options"] = [
                {"option": option, "label": label} for option, label in field.options.items()
            ]

        return result

    def get_as_list(self) -> list[dict[str, Any]]:
        return [self.get_field_as_dict(name) for name in self._definition.names()]

    def get_as_grouped_list(self) -> list[dict[str, Any]]:
        """Fields structured by the groups set with set_groups()."""
        return [
            {
                "group_name": group_name,
                "group_caption": self.translate(f"group_{group_name}"),
                "fields": [self.get_field_as_dict(name) for name in members],
            }
            for group_name, members in self._groups.items()
        ]

    # =========================================================================
    # Validation
    # =========================================================================

    def add_error(self, name: str, token: str, params: Mapping[str, Any] | None = None) -> Form:
        """Record a validation error; ``token`` is translated with ``%field%`` set."""
        message = self.translate(token, {**(params or {}), "%field%": self.get_field_caption(name)})
        self._errors.add(ValidationError(field=name, message=message, code=token))
        return self

    def validate(self) -> Form:
        """Validate all fields; read the result with get_errors(), is_valid(), ..."""
        self._session.begin()
        self._errors.clear()

        for field in self._definition:
            if field.name.isdigit():
                raise DefinitionError(
                    "Form field names can not be numeric - "
                    "there probably is a typo in the form definition"
                )
            self.evaluator.validate_field(self, field, self.get_value(field.name))

        self._session.complete()

        logger.debug(
            "Validated %s: %d field(s), %d with errors",
            type(self).__name__,
            len(self._definition),
            len(self._errors),
        )
        return self

    def clear_errors(self) -> Form:
        """Reset the validation so that validate() can run again."""
        self._session.reset()
        self._errors.clear()
        return self

    def has_errors(self) -> bool:
        return len(self.get_errors()) > 0

    def is_valid(self) -> bool:
        return not self.has_errors()

    def get_errors(self) -> dict[str, list[str]]:
        """Messages by field name; validate() must have been called."""
        self._session.require_validated()
        return self._errors.messages()

    def get_error_details(self) -> list[ValidationError]:
        self._session.require_validated()
        return list(self._errors)

    def get_first_error(self) -> str:
        self._session.require_validated()
        first = self._errors.first()
        return first.message if first else ""

    def get_errors_as_text(self) -> str:
        result = ""
        for counter, (name, messages) in enumerate(self.get_errors().items(), start=1):
            result += f"{counter}) {name}\n"
            for message in messages:
                result += f"   - {message}\n"
        return result

    def get_errors_by_page(self) -> dict[Any, dict[str, list[str]]]:
        result: dict[Any, dict[str, list[str]]] = {}
        for name, messages in self.get_errors().items():
            page = self.get_field_definition(name).page
            if page:
                result.setdefault(page, {})[name] = messages
        return result

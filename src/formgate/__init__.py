"""Formgate: whitelist input validation with localized messages.

Usage:
    from formgate import Form, CatalogTranslator

    form = Form(translator=CatalogTranslator(locale="en"))
    form.set_definition({"age": {"type": "int", "min": 18, "required": True}})
    form.set_defined_writable_values({"age": "17"})

    form.validate().get_errors()
    # {"age": ["age is too small (min. 18)"]}
"""

from formgate.config import FormgateConfig
from formgate.definition import DefinitionSnapshot, FieldDefinition, FieldType
from formgate.exceptions import (
    ConfigError,
    DefinitionError,
    FactoryError,
    FormgateError,
    OptionsError,
    SessionError,
)
from formgate.factory import FormFactory
from formgate.form import Form
from formgate.i18n import CatalogTranslator, Translator
from formgate.options import DictOptions, JsonOptions, YamlOptions
from formgate.validation import RuleEvaluator, ValidationError

__version__ = "0.1.0"

__all__ = [
    "CatalogTranslator",
    "ConfigError",
    "DefinitionError",
    "DefinitionSnapshot",
    "DictOptions",
    "FactoryError",
    "FieldDefinition",
    "FieldType",
    "Form",
    "FormFactory",
    "FormgateConfig",
    "FormgateError",
    "JsonOptions",
    "OptionsError",
    "RuleEvaluator",
    "SessionError",
    "Translator",
    "ValidationError",
    "YamlOptions",
    "__version__",
]

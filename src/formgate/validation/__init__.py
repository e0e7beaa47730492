"""Field validation: rule evaluation, format checks and error records.

Usage:
    from formgate.validation import RuleEvaluator, ValidationError

    evaluator = RuleEvaluator()
    evaluator.validate_field(form, form.get_field_definition("email"), "a@b.de")
"""

from formgate.validation.rules import (
    TYPE_TOKENS,
    RuleEvaluator,
    RuleTarget,
    compile_pattern,
    is_blank,
    is_empty,
    loosely_equal,
)
from formgate.validation.types import ErrorCollector, FieldValue, ValidationError

__all__ = [
    "TYPE_TOKENS",
    "ErrorCollector",
    "FieldValue",
    "RuleEvaluator",
    "RuleTarget",
    "ValidationError",
    "compile_pattern",
    "is_blank",
    "is_empty",
    "loosely_equal",
]

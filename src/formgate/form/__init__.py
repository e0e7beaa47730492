"""Form instances and their value and session state."""

from formgate.form.form import Form
from formgate.form.session import SessionState, ValidationSession
from formgate.form.values import ValueStore, convert_to_bool, optional_default

__all__ = [
    "Form",
    "SessionState",
    "ValidationSession",
    "ValueStore",
    "convert_to_bool",
    "optional_default",
]

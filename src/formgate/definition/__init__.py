"""Form definitions: field types, snapshots and declarative form files."""

from formgate.definition.loader import DefinitionLoader, FormSpec
from formgate.definition.types import (
    PROPERTIES,
    DefinitionSnapshot,
    FieldDefinition,
    FieldType,
)
from formgate.definition.validator import DefinitionIssue, validate_form_file

__all__ = [
    "PROPERTIES",
    "DefinitionIssue",
    "DefinitionLoader",
    "DefinitionSnapshot",
    "FieldDefinition",
    "FieldType",
    "FormSpec",
    "validate_form_file",
]

"""
definition/validator.py — JSON Schema validation for declarative form files.

Usage:
    from formgate.definition.validator import validate_definitions_dir

    issues = validate_definitions_dir(Path("forms"))
    for issue in issues:
        print(issue)

Besides the schema, each file is checked for problems the schema cannot
express: unknown field types are caught by the schema, but ``matches`` /
``depends`` references to undefined fields and group members that are not
fields are reported here.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
FORM_SCHEMA = "form.schema.json"


@dataclass
class DefinitionIssue:
    """A single finding for a form definition file."""

    file: Path
    message: str
    path: str = ""           # location within the document, e.g. "fields/email/type"
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str = FORM_SCHEMA) -> dict[str, Any]:
    with (_SCHEMAS_DIR / name).open(encoding="utf-8") as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _check_references(yaml_path: Path, doc: dict[str, Any]) -> list[DefinitionIssue]:
    """Report field references that point to undefined fields."""
    fields = doc.get("fields") or {}
    names = {str(name) for name in fields}
    issues: list[DefinitionIssue] = []

    for name, props in fields.items():
        if not isinstance(props, dict):
            continue
        for prop in ("matches", "depends"):
            target = props.get(prop)
            if not isinstance(target, str):
                continue
            target = target.lstrip("!") if prop == "matches" else target
            if target not in names:
                issues.append(
                    DefinitionIssue(
                        file=yaml_path,
                        message=f"{prop} refers to undefined field '{target}'",
                        path=f"fields/{name}/{prop}",
                    )
                )
        if str(name).isdigit():
            issues.append(
                DefinitionIssue(
                    file=yaml_path,
                    message="Field names can not be numeric",
                    path=f"fields/{name}",
                )
            )

    for group, members in (doc.get("groups") or {}).items():
        for member in members or []:
            if member not in names:
                issues.append(
                    DefinitionIssue(
                        file=yaml_path,
                        message=f"Group member '{member}' is not a field",
                        path=f"groups/{group}",
                        severity="warning",
                    )
                )

    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_form_file(
    yaml_path: Path,
    *,
    validator: Draft202012Validator | None = None,
) -> list[DefinitionIssue]:
    """
    Validate a single form definition file.

    Args:
        yaml_path: Path to the YAML file to validate.
        validator: Pre-built schema validator. Built automatically if omitted.

    Returns:
        A list of :class:`DefinitionIssue` objects (empty on success).
    """
    # 1. Parse YAML
    try:
        with yaml_path.open(encoding="utf-8") as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [DefinitionIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [DefinitionIssue(file=yaml_path, message="File is empty or contains only whitespace")]

    # 2. Schema
    if validator is None:
        validator = Draft202012Validator(_load_schema())

    issues = [
        DefinitionIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(map(str, e.path)))
    ]

    # 3. References (only meaningful for a structurally valid document)
    if not issues:
        issues.extend(_check_references(yaml_path, doc))

    return issues


def validate_definitions_dir(
    definitions_dir: Path,
    *,
    strict: bool = False,
) -> list[DefinitionIssue]:
    """
    Validate all ``*.yaml`` files in *definitions_dir*.

    Args:
        definitions_dir: Directory containing form definition files.
        strict:          If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`DefinitionIssue` objects across all files.
    """
    if not definitions_dir.is_dir():
        return [
            DefinitionIssue(
                file=definitions_dir,
                message=f"Definitions directory does not exist: {definitions_dir}",
            )
        ]

    validator = Draft202012Validator(_load_schema())
    all_issues: list[DefinitionIssue] = []

    for yaml_file in sorted(definitions_dir.glob("*.yaml")):
        file_issues = validate_form_file(yaml_file, validator=validator)
        if strict:
            for issue in file_issues:
                if issue.severity == "warning":
                    issue.severity = "error"
        all_issues.extend(file_issues)

    logger.debug("Validated definitions in %s: %d issue(s)", definitions_dir, len(all_issues))
    return all_issues

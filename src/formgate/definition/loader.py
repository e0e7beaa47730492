"""Load declarative form definitions from YAML files.

A form file looks like this:

    form: user
    fields:
      firstname:
        caption: Firstname
        type: string
        min: 2
      country:
        type: string
        options_from: countries
        please_select: true
    groups:
      person: [firstname, country]

``options_from`` names an option list that is resolved when the form is
built, so the labels follow the form's locale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import yaml

from formgate.definition.types import DefinitionSnapshot
from formgate.exceptions import DefinitionError

logger = logging.getLogger(__name__)


class OptionSource(Protocol):
    """What a form spec needs to resolve ``options_from`` references."""

    def options(self, list_name: str) -> dict[Any, Any]:
        ...

    def options_with_default(self, list_name: str, default_label: str = "") -> dict[Any, Any]:
        ...


@dataclass
class FormSpec:
    """A declarative form: name, raw field properties and groups."""

    name: str
    fields: dict[str, dict[str, Any]]
    groups: dict[str, list[str]] = field(default_factory=dict)
    description: str = ""
    source: Path | None = None

    def resolve_fields(self, source: OptionSource | None = None) -> dict[str, dict[str, Any]]:
        """Field properties with ``options_from`` replaced by the option list."""
        resolved: dict[str, dict[str, Any]] = {}
        for name, props in self.fields.items():
            props = dict(props)
            list_name = props.pop("options_from", None)
            please_select = props.pop("please_select", False)
            if list_name:
                if source is None:
                    raise DefinitionError(
                        f'Field "{name}" of form "{self.name}" needs option list '
                        f'"{list_name}", but no options supplier is available'
                    )
                if please_select:
                    props["options"] = source.options_with_default(list_name)
                else:
                    props["options"] = source.options(list_name)
            resolved[name] = props
        return resolved

    def snapshot(self, source: OptionSource | None = None) -> DefinitionSnapshot:
        return DefinitionSnapshot.from_dict(self.resolve_fields(source))


class DefinitionLoader:
    """Loads form definition files from a directory."""

    def __init__(self, definitions_path: Path | str):
        self.definitions_path = Path(definitions_path)
        self.forms: dict[str, FormSpec] = {}

    def load_all(self) -> None:
        """Load all ``*.yaml`` files; form names must be unique."""
        if not self.definitions_path.exists():
            logger.debug("No definitions directory at %s", self.definitions_path)
            return

        for yaml_file in sorted(self.definitions_path.glob("*.yaml")):
            spec = self.load_file(yaml_file)
            if spec is None:
                continue
            if spec.name in self.forms:
                raise DefinitionError(
                    f"Duplicate form '{spec.name}' in {yaml_file} "
                    f"and {self.forms[spec.name].source}"
                )
            self.forms[spec.name] = spec

    def load_file(self, yaml_file: Path) -> FormSpec | None:
        """Read one form file; files without a ``form`` key are skipped."""
        with open(yaml_file, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not data or "form" not in data:
            logger.debug("Skipping %s: not a form definition", yaml_file)
            return None

        logger.debug("Loaded form %s from %s", data["form"], yaml_file)
        return self._resolve_form(data, yaml_file)

    def get(self, name: str) -> FormSpec | None:
        return self.forms.get(name)

    def _resolve_form(self, data: dict, source: Path | None = None) -> FormSpec:
        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise DefinitionError(f"'fields' of form '{data['form']}' must be a mapping")

        return FormSpec(
            name=str(data["form"]),
            fields={str(name): dict(props or {}) for name, props in fields.items()},
            groups={
                str(group): list(members or [])
                for group, members in (data.get("groups") or {}).items()
            },
            description=data.get("description", ""),
            source=source,
        )

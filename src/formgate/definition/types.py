"""Field definitions and the immutable definition snapshot.

A form definition is an ordered set of field definitions. Each field is
described by the property DSL below (also the wire format shared with
client-side validators):

    caption              Field title, translated for messages and rendering
    type                 int, numeric, float, scalar, list, bool, string, email,
                         ip, url, date, datetime, time or switch
    type_params          Parameters for the type check (e.g. {"decimal": ","})
    options              Ordered mapping of option key -> label
    min / max            Value for numbers/dates, length for strings,
                         element count for lists
    required             Field must not be empty
    optional             Missing input is filled with a type default
                         (``checkbox`` is accepted as an alias)
    readonly             Field is not writable by the user
    hidden               Field is not shown to the user
    default              Value returned until a value is written
    regex                Pattern the value must match
    matches              Value must equal another field ("!name": must differ)
    depends              Field is required if the named field is not empty
    depends_value        ...if the named field has this value
    depends_value_empty  ...if the named field is empty
    depends_first_option ...if the named field has its first option selected
    depends_last_option  ...if the named field has its last option selected
    page                 Page number for multi-page forms
    tags                 Labels for retrieving values by tag

Snapshots are never changed in place; ``add()`` and ``apply_patch()`` return a
new snapshot.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from formgate.exceptions import DefinitionError

logger = logging.getLogger(__name__)


class FieldType(Enum):
    """Closed set of field types understood by the rule evaluator."""

    INT = "int"
    NUMERIC = "numeric"
    FLOAT = "float"
    SCALAR = "scalar"
    LIST = "list"
    BOOL = "bool"
    STRING = "string"
    EMAIL = "email"
    IP = "ip"
    URL = "url"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    SWITCH = "switch"

    @property
    def is_numeric(self) -> bool:
        return self in (FieldType.INT, FieldType.NUMERIC, FieldType.FLOAT)

    @property
    def is_temporal(self) -> bool:
        return self in (FieldType.DATE, FieldType.DATETIME, FieldType.TIME)

    @classmethod
    def parse(cls, value: Any) -> FieldType | None:
        if value is None or isinstance(value, FieldType):
            return value
        try:
            return cls(value)
        except ValueError:
            raise DefinitionError(f"Invalid field type: {value}") from None


# Properties of the DSL, in export order
PROPERTIES = (
    "caption",
    "type",
    "type_params",
    "options",
    "min",
    "max",
    "required",
    "optional",
    "readonly",
    "hidden",
    "default",
    "regex",
    "matches",
    "depends",
    "depends_value",
    "depends_value_empty",
    "depends_first_option",
    "depends_last_option",
    "page",
    "tags",
)

_FLAGS = (
    "required",
    "optional",
    "readonly",
    "hidden",
    "depends_value_empty",
    "depends_first_option",
    "depends_last_option",
)


@dataclass(frozen=True, eq=True)
class FieldDefinition:
    """Definition of a single form field.

    Unknown properties are kept in ``extra`` so that rendering layers can
    carry their own hints through the definition.
    """

    name: str
    caption: str | None = None
    type: FieldType | None = None
    type_params: Mapping[str, Any] | None = None
    options: Mapping[Any, Any] | None = None
    min: Any = None
    max: Any = None
    required: bool = False
    optional: bool = False
    readonly: bool = False
    hidden: bool = False
    default: Any = None
    regex: str | None = None
    matches: str | None = None
    depends: str | None = None
    depends_value: Any = None
    depends_value_empty: bool = False
    depends_first_option: bool = False
    depends_last_option: bool = False
    page: Any = None
    tags: frozenset[str] = field(default_factory=frozenset)
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: Any, data: Mapping[str, Any] | None) -> FieldDefinition:
        """Build a field definition from its DSL mapping."""
        data = dict(data or {})

        if "checkbox" in data:
            checkbox = data.pop("checkbox")
            data.setdefault("optional", checkbox)

        type_params = data.get("type_params")
        if type_params is not None and not isinstance(type_params, Mapping):
            raise DefinitionError(
                f'type_params of "{name}" must be a mapping, e.g. {{"decimal": ","}}'
            )

        options = data.get("options")
        if options is not None:
            if isinstance(options, Mapping):
                options = dict(options)
            elif isinstance(options, (list, tuple)):
                # A plain list is indexed like an array: 0 -> first item, ...
                options = dict(enumerate(options))
            else:
                raise DefinitionError(f'options of "{name}" must be a mapping or a list')

        tags = data.get("tags") or ()
        if isinstance(tags, str):
            tags = (tags,)

        kwargs: dict[str, Any] = {
            "name": str(name),
            "caption": data.get("caption"),
            "type": FieldType.parse(data.get("type")),
            "type_params": dict(type_params) if type_params is not None else None,
            "options": options,
            "min": data.get("min"),
            "max": data.get("max"),
            "default": data.get("default"),
            "regex": data.get("regex"),
            "matches": data.get("matches"),
            "depends": data.get("depends"),
            "depends_value": data.get("depends_value"),
            "page": data.get("page"),
            "tags": frozenset(tags),
            "extra": {k: v for k, v in data.items() if k not in PROPERTIES},
        }
        for flag in _FLAGS:
            kwargs[flag] = bool(data.get(flag, False))

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Return the DSL mapping, leaving out unset properties."""
        result: dict[str, Any] = {}
        for prop in PROPERTIES:
            value = getattr(self, prop)
            if prop == "type":
                value = value.value if value is not None else None
            elif prop == "tags":
                value = sorted(value) if value else None
            elif prop in ("type_params", "options") and value is not None:
                value = dict(value)
            if value is None or (prop in _FLAGS and not value):
                continue
            result[prop] = value
        result.update(self.extra)
        return result

    def get(self, prop: str, default: Any = None) -> Any:
        """Return a property by DSL name (``extra`` included)."""
        if prop == "checkbox":
            prop = "optional"
        if prop in PROPERTIES:
            return getattr(self, prop)
        return self.extra.get(prop, default)

    @property
    def has_options(self) -> bool:
        return bool(self.options)


class DefinitionSnapshot:
    """Immutable, ordered mapping of field name -> FieldDefinition."""

    __slots__ = ("_fields",)

    def __init__(self, definitions: Iterable[FieldDefinition] = ()):
        ordered: dict[str, FieldDefinition] = {}
        for definition in definitions:
            if definition.name in ordered:
                raise DefinitionError(f'Definition for "{definition.name}" already exists')
            ordered[definition.name] = definition
        self._fields = MappingProxyType(ordered)

    @classmethod
    def from_dict(cls, data: Mapping[Any, Mapping[str, Any] | None]) -> DefinitionSnapshot:
        """Build a snapshot from ``{field_name: {property: value}}``."""
        return cls([FieldDefinition.from_dict(name, props) for name, props in data.items()])

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DefinitionSnapshot):
            return NotImplemented
        return list(self._fields.items()) == list(other._fields.items())

    def __repr__(self) -> str:
        return f"DefinitionSnapshot({list(self._fields)!r})"

    def names(self) -> list[str]:
        return list(self._fields)

    def get(self, name: str) -> FieldDefinition:
        """Return a field definition or raise DefinitionError."""
        try:
            return self._fields[name]
        except KeyError:
            raise DefinitionError(f'No form field definition found for "{name}".') from None

    def add(self, name: str, properties: Mapping[str, Any] | None = None) -> DefinitionSnapshot:
        """Return a new snapshot with one more field appended."""
        if name in self._fields:
            raise DefinitionError(f'Definition for "{name}" already exists')
        return DefinitionSnapshot([*self._fields.values(), FieldDefinition.from_dict(name, properties)])

    def apply_patch(self, name: str, patch: Mapping[str, Any]) -> DefinitionSnapshot:
        """Return a new snapshot with the field's properties merged with ``patch``.

        A property patched to ``None`` is removed (JSON merge patch semantics).
        """
        if name not in self._fields:
            raise DefinitionError(f'Definition for "{name}" does not exist')

        properties = self._fields[name].to_dict()
        for prop, value in patch.items():
            if value is None:
                properties.pop(prop, None)
            else:
                properties[prop] = value

        logger.debug("Patched field %s: %s", name, sorted(patch))

        patched = FieldDefinition.from_dict(name, properties)
        return DefinitionSnapshot(
            patched if existing.name == name else existing for existing in self._fields.values()
        )

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {name: definition.to_dict() for name, definition in self._fields.items()}

    def content_hash(self) -> str:
        """Hash of the definition, identical for identical rule sets."""
        payload = json.dumps(self.to_dict(), default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


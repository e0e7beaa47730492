"""Validation results: per-field error records and their collector."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterator, Union

# A coerced field value
FieldValue = Union[str, int, float, bool, list, dict, date, datetime, time, None]


@dataclass(frozen=True)
class ValidationError:
    """A single localized validation error.

    Attributes:
        field: Name of the field the error belongs to
        message: Translated message with placeholders substituted
        code: Translation token of the message (e.g. "form.value_is_too_big")
    """

    field: str
    message: str
    code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "field": self.field,
        }


class ErrorCollector:
    """Errors grouped by field, in insertion order.

    Only fields that received at least one error appear as keys.
    """

    def __init__(self) -> None:
        self._errors: dict[str, list[ValidationError]] = {}

    def add(self, error: ValidationError) -> None:
        self._errors.setdefault(error.field, []).append(error)

    def clear(self) -> None:
        self._errors = {}

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[ValidationError]:
        for errors in self._errors.values():
            yield from errors

    def __contains__(self, name: object) -> bool:
        return name in self._errors

    def fields(self) -> list[str]:
        return list(self._errors)

    def for_field(self, name: str) -> list[ValidationError]:
        return list(self._errors.get(name, []))

    def messages(self) -> dict[str, list[str]]:
        return {name: [e.message for e in errors] for name, errors in self._errors.items()}

    def first(self) -> ValidationError | None:
        for errors in self._errors.values():
            if errors:
                return errors[0]
        return None

"""Option lists for select fields (countries, titles, ...).

File based suppliers expect one directory per list and one file per locale:

    <options_path>/countries/en.yaml
    <options_path>/countries/de.yaml

If the file for the current locale is missing, the default locale is used.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

import yaml

from formgate.exceptions import OptionsError

logger = logging.getLogger(__name__)


class OptionsSupplier(Protocol):
    """Returns an ordered mapping of option key -> label for a list name."""

    def get(self, list_name: str) -> dict[Any, Any]:
        ...


class DictOptions:
    """In-memory option lists, mostly for tests and small applications."""

    def __init__(self, lists: Mapping[str, Mapping[Any, Any]] | None = None):
        self.lists: dict[str, dict[Any, Any]] = {
            name: dict(options) for name, options in (lists or {}).items()
        }

    def get(self, list_name: str) -> dict[Any, Any]:
        if list_name not in self.lists:
            raise OptionsError(f'Options list "{list_name}" does not exist')
        return dict(self.lists[list_name])


class FileOptions:
    """Base class for option lists stored as one file per list and locale."""

    extension = ""

    def __init__(
        self,
        locale_getter: Callable[[], str],
        options_path: Path | str | None = None,
        default_locale: str = "en",
    ):
        self._locale_getter = locale_getter
        self.options_path = Path(options_path) if options_path else None
        self.default_locale = default_locale
        self._cache: dict[tuple[str, str], dict[Any, Any]] = {}

    def get_options_path(self) -> Path:
        if self.options_path is None:
            raise OptionsError("No options path configured - set options_path to the option lists directory")
        return self.options_path

    def get(self, list_name: str) -> dict[Any, Any]:
        filename = self._find_file(list_name)
        key = (list_name, filename.name)
        if key not in self._cache:
            self._cache[key] = self._parse(filename)
        return dict(self._cache[key])

    def _find_file(self, list_name: str) -> Path:
        list_path = self.get_options_path() / list_name
        locale = self._locale_getter()
        filename = list_path / f"{locale}.{self.extension}"

        if not filename.exists():
            fallback = list_path / f"{self.default_locale}.{self.extension}"
            logger.debug("No %s options for locale %s, trying %s", list_name, locale, fallback)
            filename = fallback

        if not filename.exists():
            raise OptionsError(f"File not found: {filename}")

        return filename

    def _parse(self, filename: Path) -> dict[Any, Any]:
        raise NotImplementedError("Subclasses must implement _parse()")


class YamlOptions(FileOptions):
    """Option lists stored as YAML mappings."""

    extension = "yaml"

    def _parse(self, filename: Path) -> dict[Any, Any]:
        with open(filename, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise OptionsError(f"Invalid YAML in {filename}: {exc}") from exc
        if not isinstance(data, Mapping):
            raise OptionsError(f"Options file {filename} must contain a mapping")
        return dict(data)


class JsonOptions(FileOptions):
    """Option lists stored as JSON objects."""

    extension = "json"

    def _parse(self, filename: Path) -> dict[Any, Any]:
        with open(filename, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise OptionsError(f"Invalid JSON in {filename}: {exc}") from exc
        if not isinstance(data, Mapping):
            raise OptionsError(f"Options file {filename} must contain an object")
        return dict(data)

"""Message translation for captions and validation messages.

Catalogs are YAML files named ``<locale>.yaml``. Nested keys are flattened
with dots, so

    form:
      value_is_too_big: "%field% is too big (max. %limit%)"

provides the token ``form.value_is_too_big``. Placeholders have the form
``%name%`` and are replaced literally.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

import yaml

from formgate.exceptions import ConfigError

logger = logging.getLogger(__name__)

CATALOGS_DIR = Path(__file__).parent / "catalogs"


class Translator(Protocol):
    """What a form needs from a message resolver."""

    locale: str

    def translate(self, token: str, params: Mapping[str, Any] | None = None) -> str:
        """Translate ``token`` and substitute ``params``."""
        ...


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten a nested catalog mapping into dotted keys."""
    result: dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            result.update(flatten(value, full_key))
        else:
            result[full_key] = "" if value is None else str(value)
    return result


PLACEHOLDER_PATTERN = re.compile(r"%\w+%")


def substitute(message: str, params: Mapping[str, Any] | None) -> str:
    """Replace placeholders like ``%field%`` with their values.

    All placeholders are replaced in one pass; substituted values are not
    scanned again.
    """
    if not params:
        return message

    def replace(match: re.Match[str]) -> str:
        placeholder = match.group(0)
        if placeholder not in params:
            return placeholder
        value = params[placeholder]
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(replace, message)


class CatalogTranslator:
    """Translator backed by YAML message catalogs.

    Lookup order for a token: current locale, fallback locale, the token itself.
    Catalogs from ``catalog_paths`` are merged over the shipped ones, so an
    application can override messages and add field captions.
    """

    def __init__(
        self,
        locale: str = "en",
        fallback_locale: str = "en",
        catalog_paths: Iterable[Path | str] = (),
        include_builtin: bool = True,
    ):
        self._locale = locale
        self.fallback_locale = fallback_locale
        self._paths: list[Path] = []
        if include_builtin:
            self._paths.append(CATALOGS_DIR)
        self._paths.extend(Path(p) for p in catalog_paths)
        self._catalogs: dict[str, dict[str, str]] = {}

    @property
    def locale(self) -> str:
        return self._locale

    @locale.setter
    def locale(self, locale: str) -> None:
        if not locale:
            raise ConfigError("Locale must not be empty")
        self._locale = locale

    def add_messages(self, locale: str, messages: Mapping[str, Any]) -> None:
        """Merge messages into a locale's catalog (nested or dotted keys)."""
        self._catalog(locale).update(flatten(messages))

    def has(self, token: str, locale: str | None = None) -> bool:
        return token in self._catalog(locale or self._locale)

    def translate(self, token: str, params: Mapping[str, Any] | None = None) -> str:
        message = self._catalog(self._locale).get(token)
        if message is None and self.fallback_locale != self._locale:
            message = self._catalog(self.fallback_locale).get(token)
        if message is None:
            message = token
        return substitute(message, params)

    def _catalog(self, locale: str) -> dict[str, str]:
        if locale not in self._catalogs:
            self._catalogs[locale] = self._load(locale)
        return self._catalogs[locale]

    def _load(self, locale: str) -> dict[str, str]:
        catalog: dict[str, str] = {}
        for path in self._paths:
            catalog_file = path / f"{locale}.yaml"
            if not catalog_file.exists():
                continue
            with open(catalog_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)
            if data:
                catalog.update(flatten(data))
            logger.debug("Loaded catalog %s", catalog_file)
        return catalog

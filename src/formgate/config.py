"""Configuration from the environment and collaborator wiring."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from formgate.definition.loader import DefinitionLoader
from formgate.exceptions import ConfigError
from formgate.factory import FormFactory
from formgate.i18n.translator import CatalogTranslator, Translator
from formgate.options.supplier import FileOptions, JsonOptions, OptionsSupplier, YamlOptions

_OPTIONS_FORMATS: dict[str, type[FileOptions]] = {
    "yaml": YamlOptions,
    "json": JsonOptions,
}


@dataclass
class FormgateConfig:
    """Locale, definition and option list settings."""

    locale: str = "en"
    fallback_locale: str = "en"
    definitions_path: Path = Path("forms")
    options_path: Path | None = None
    options_format: str = "yaml"
    catalog_path: Path | None = None

    def __post_init__(self) -> None:
        if self.options_format not in _OPTIONS_FORMATS:
            raise ConfigError(
                f"Unsupported options format '{self.options_format}' "
                f"(expected one of: {', '.join(_OPTIONS_FORMATS)})"
            )
        if not self.locale:
            raise ConfigError("Locale must not be empty")

    @classmethod
    def from_env(cls) -> FormgateConfig:
        """Create config from environment variables.

        FORMGATE_LOCALE            Initial locale (default: en)
        FORMGATE_FALLBACK_LOCALE   Locale used when a message or option list is missing (default: en)
        FORMGATE_DEFINITIONS_PATH  Directory of form definition files (default: ./forms)
        FORMGATE_OPTIONS_PATH      Root directory of option lists
        FORMGATE_OPTIONS_FORMAT    yaml or json (default: yaml)
        FORMGATE_CATALOG_PATH      Directory of additional message catalogs
        """
        options_path = os.environ.get("FORMGATE_OPTIONS_PATH")
        catalog_path = os.environ.get("FORMGATE_CATALOG_PATH")

        return cls(
            locale=os.environ.get("FORMGATE_LOCALE", "en"),
            fallback_locale=os.environ.get("FORMGATE_FALLBACK_LOCALE", "en"),
            definitions_path=Path(os.environ.get("FORMGATE_DEFINITIONS_PATH", "forms")),
            options_path=Path(options_path) if options_path else None,
            options_format=os.environ.get("FORMGATE_OPTIONS_FORMAT", "yaml").lower(),
            catalog_path=Path(catalog_path) if catalog_path else None,
        )

    def create_translator(self) -> CatalogTranslator:
        return CatalogTranslator(
            locale=self.locale,
            fallback_locale=self.fallback_locale,
            catalog_paths=[self.catalog_path] if self.catalog_path else [],
        )

    def create_options(self, translator: Translator) -> OptionsSupplier:
        """File based option lists following the translator's current locale."""
        options_class = _OPTIONS_FORMATS[self.options_format]
        return options_class(
            locale_getter=lambda: translator.locale,
            options_path=self.options_path,
            default_locale=self.fallback_locale,
        )

    def create_loader(self) -> DefinitionLoader:
        loader = DefinitionLoader(self.definitions_path)
        loader.load_all()
        return loader

    def create_factory(self) -> FormFactory:
        return FormFactory(
            translator_factory=self.create_translator,
            options_factory=self.create_options,
            loader=self.create_loader(),
        )

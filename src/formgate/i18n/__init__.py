"""Message catalogs and translation."""

from formgate.i18n.translator import CatalogTranslator, Translator, flatten, substitute

__all__ = ["CatalogTranslator", "Translator", "flatten", "substitute"]

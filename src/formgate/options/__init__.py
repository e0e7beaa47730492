"""Option list suppliers."""

from formgate.options.supplier import (
    DictOptions,
    FileOptions,
    JsonOptions,
    OptionsSupplier,
    YamlOptions,
)

__all__ = [
    "DictOptions",
    "FileOptions",
    "JsonOptions",
    "OptionsSupplier",
    "YamlOptions",
]

"""Shared fixtures for formgate tests."""

from pathlib import Path

import pytest

from formgate.form.form import Form
from formgate.i18n.translator import CatalogTranslator
from formgate.options.supplier import YamlOptions

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def translator():
    return CatalogTranslator(locale="en")


@pytest.fixture
def form(translator):
    return Form(translator=translator)


@pytest.fixture
def de_form():
    return Form(translator=CatalogTranslator(locale="de"))


@pytest.fixture
def yaml_options(translator):
    return YamlOptions(
        locale_getter=lambda: translator.locale,
        options_path=FIXTURES_DIR / "options",
    )

"""Form factory: resolves a logical form name to a ready-to-use Form.

Names are resolved in this order:

1. Form classes registered with ``register()``
2. Declarative forms known to the definition loader
3. Import paths of the form ``"package.module:ClassName"``

Every created form gets its own translator and option supplier, since
forms are request scoped and the locale is per request.

Example:
    factory = FormFactory(loader=loader)
    factory.register("user", UserForm)

    form = factory.create("user", params={"user_id": 42}, locale="de")
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, Mapping

from formgate.definition.loader import DefinitionLoader
from formgate.exceptions import FactoryError
from formgate.form.form import Form
from formgate.i18n.translator import CatalogTranslator, Translator
from formgate.options.supplier import OptionsSupplier
from formgate.validation.rules import RuleEvaluator

logger = logging.getLogger(__name__)

TranslatorFactory = Callable[[], Translator]
OptionsFactory = Callable[[Translator], OptionsSupplier]


class FormFactory:
    """Creates forms by name with their collaborators injected."""

    def __init__(
        self,
        translator_factory: TranslatorFactory | None = None,
        options_factory: OptionsFactory | None = None,
        loader: DefinitionLoader | None = None,
        evaluator: RuleEvaluator | None = None,
        form_class: type[Form] = Form,
    ):
        self.translator_factory = translator_factory or CatalogTranslator
        self.options_factory = options_factory
        self.loader = loader
        self.evaluator = evaluator or RuleEvaluator()
        self.form_class = form_class
        self._forms: dict[str, type[Form]] = {}

    def register(self, name: str, form_class: type[Form]) -> None:
        """Register a form class by name.

        Idempotent - re-registering the same name is a no-op.
        """
        if not name:
            raise FactoryError("Form name must not be empty")
        if name in self._forms:
            return
        self._forms[name] = form_class

    def list_registered(self) -> list[str]:
        names = list(self._forms)
        if self.loader is not None:
            names.extend(n for n in self.loader.forms if n not in self._forms)
        return names

    def clear(self) -> None:
        """Remove all registered classes (loaded definitions stay)."""
        self._forms.clear()

    def create(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        locale: str | None = None,
    ) -> Form:
        """Create a form by logical name.

        Raises:
            FactoryError: If the name is empty or can not be resolved
        """
        if not name:
            raise FactoryError("Form name must not be empty")

        translator = self.translator_factory()
        if locale:
            translator.locale = locale
        options = self.options_factory(translator) if self.options_factory else None

        if name in self._forms:
            logger.debug("Creating form %s from registered class", name)
            return self._forms[name](
                translator=translator, options=options, params=params, evaluator=self.evaluator
            )

        spec = self.loader.get(name) if self.loader is not None else None
        if spec is not None:
            logger.debug("Creating form %s from %s", name, spec.source)
            form = self.form_class(
                translator=translator, options=options, params=params, evaluator=self.evaluator
            )
            form.set_definition(spec.snapshot(form))
            form.set_groups(spec.groups)
            return form

        if ":" in name:
            form_class = self._import_class(name)
            logger.debug("Creating form %s from import path", name)
            return form_class(
                translator=translator, options=options, params=params, evaluator=self.evaluator
            )

        raise FactoryError(
            f"Form '{name}' is not registered. "
            "Register a form class, add a definition file or use 'module:ClassName'."
        )

    @staticmethod
    def _import_class(path: str) -> type[Form]:
        module_name, _, class_name = path.partition(":")
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise FactoryError(f"Can not import form module '{module_name}': {exc}") from exc

        form_class = getattr(module, class_name, None)
        if not isinstance(form_class, type) or not issubclass(form_class, Form):
            raise FactoryError(f"'{path}' is not a Form class")
        return form_class

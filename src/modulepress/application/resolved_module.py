from typing import Any, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.domain import (
    BaseModule,
    DynamicModule,
    ModuleDescriptor,
    ModuleResolutionError,
    Provider,
    Token,
)
from modulepress.domain.exceptions import token_name


class ResolvedModule:
    """A module descriptor bound to its class, validated on construction.

    Every rule a module declaration must satisfy is checked here, so a
    ``ResolvedModule`` that exists is known to be well formed:

    - imports are ``@module`` classes or dynamic module instances of one;
    - providers are bare classes, ``Provider`` objects or provider
      dictionaries, each with exactly one construction strategy;
    - exports are tokens of this module's own providers;
    - controllers are ``@rest_controller`` classes and entities are
      ``@custom_post_type`` classes;
    - no list holds duplicates.

    The module that imported this one is kept by class, never by reference,
    and looked up through the module registry when needed.

    Attributes:
        module_class: Class identity of the module.
        instance: The live module object (a ``BaseModule``).
        loaded_by: Class of the module whose import discovered this one, ``None`` for the root.
        is_global: Whether exports are visible without importing the module.

    Raises:
        ModuleResolutionError: On the first declaration rule the module violates.
    """

    def __init__(
        self,
        descriptor: ModuleDescriptor,
        module_class: type,
        loaded_by: Optional[type],
        instance: BaseModule,
    ) -> None:
        self.module_class = module_class
        self.instance = instance
        self.loaded_by = loaded_by
        self.is_global = AttributeScanner.is_global(module_class)
        self._descriptor = descriptor
        self._providers: List[Provider] = []
        self._validate()

    def __repr__(self) -> str:
        return f"ResolvedModule({self.name})"

    @property
    def name(self) -> str:
        return self.module_class.__name__

    @property
    def imports(self) -> List[Any]:
        return list(self._descriptor.imports)

    @property
    def imports_as_classes(self) -> List[type]:
        return [type(imp) if isinstance(imp, DynamicModule) else imp for imp in self._descriptor.imports]

    @property
    def providers(self) -> List[Provider]:
        return list(self._providers)

    @property
    def controllers(self) -> List[type]:
        return list(self._descriptor.controllers)

    @property
    def entities(self) -> List[type]:
        return list(self._descriptor.entities)

    @property
    def exports(self) -> List[Token]:
        return list(self._descriptor.exports)

    @property
    def provided_tokens(self) -> List[Token]:
        return [provider.provide for provider in self._providers]

    def provides(self, token: Token) -> bool:
        return any(provider.provide == token for provider in self._providers)

    def exports_token(self, token: Token) -> bool:
        return token in self._descriptor.exports

    def get_provider(self, token: Token) -> Optional[Provider]:
        for provider in self._providers:
            if provider.provide == token:
                return provider
        return None

    def _validate(self) -> None:
        self._validate_imports()
        self._verify_duplicates(self.imports_as_classes, "imports")

        self._providers = [self._normalize_provider(entry) for entry in self._descriptor.providers]
        self._verify_duplicates(self.provided_tokens, "providers")

        for export in self._descriptor.exports:
            if not self.provides(export):
                self._fail(
                    f"Exported provider '{token_name(export)}' must be present in provider list "
                    f"of module '{self.name}'"
                )
        self._verify_duplicates(self._descriptor.exports, "exports")

        for controller in self._descriptor.controllers:
            if not isinstance(controller, type):
                self._fail(f"Controller '{controller!r}' must be a class")
            if not AttributeScanner.is_rest_controller(controller):
                self._fail(
                    f"Controller '{controller.__name__}' must be decorated with '@rest_controller' "
                    f"in module '{self.name}'",
                    controller,
                )
        self._verify_duplicates(self._descriptor.controllers, "controllers")

        for entity in self._descriptor.entities:
            if not isinstance(entity, type):
                self._fail(f"Entity '{entity!r}' must be a class")
            if not AttributeScanner.is_custom_post_type(entity):
                self._fail(
                    f"Entity '{entity.__name__}' must be decorated with '@custom_post_type' "
                    f"in module '{self.name}'",
                    entity,
                )
        self._verify_duplicates(self._descriptor.entities, "entities")

    def _validate_imports(self) -> None:
        for imported in self._descriptor.imports:
            if isinstance(imported, DynamicModule):
                imported_class = type(imported)
            elif isinstance(imported, type):
                imported_class = imported
            else:
                self._fail("Imported module must be a module class or an instance of a dynamic module.")
            if not AttributeScanner.has_module(imported_class):
                self._fail(
                    f"Imported module '{imported_class.__name__}' must be decorated with '@module' "
                    f"in module '{self.name}'"
                )

    def _normalize_provider(self, entry: Any) -> Provider:
        if isinstance(entry, Provider):
            provider = entry
        elif isinstance(entry, type):
            provider = Provider.for_class(entry)
        elif isinstance(entry, dict):
            try:
                provider = Provider(**entry)
            except PydanticValidationError as e:
                self._fail(f"Invalid provider declaration {entry!r}: {e.errors()[0]['msg']}")
        else:
            self._fail("Provider must be a class, a Provider or a provider dictionary.")

        if not isinstance(provider.provide, (str, type)):
            self._fail(f"Provider token '{provider.provide!r}' must be a string or a class.")

        strategies = provider.strategy_count()
        if strategies == 0:
            self._fail(f"Provider '{token_name(provider.provide)}' must be provided a class, factory or value.")
        if strategies > 1:
            self._fail(
                f"Provider '{token_name(provider.provide)}' must define exactly one of class, factory or value."
            )
        if provider.has_usable_class() and not isinstance(provider.use_class, type):
            self._fail(f"Provided dependency '{provider.use_class!r}' is not a class.")
        if provider.has_usable_factory() and not callable(provider.use_factory):
            self._fail(f"Provided dependency factory '{token_name(provider.provide)}' is not callable.")
        return provider

    def _verify_duplicates(self, entries: Sequence[Any], attribute: str) -> None:
        if len(entries) != len(set(entries)):
            self._fail(f"Duplicate '{attribute}' found in module class '{self.name}'")

    def _fail(self, reason: str, location: Optional[type] = None) -> None:
        raise ModuleResolutionError(reason=reason).for_class(location or self.module_class)

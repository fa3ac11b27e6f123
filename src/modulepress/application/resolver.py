import inspect
import logging
from typing import TYPE_CHECKING, Annotated, Any, Callable, Dict, List, Tuple, Union, get_args, get_origin, get_type_hints

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.resolved_module import ResolvedModule
from modulepress.domain import Inject, Lifetime, ModuleResolutionError, Token
from modulepress.domain.exceptions import token_name

if TYPE_CHECKING:
    from modulepress.application.module_container import ModuleContainer

logger = logging.getLogger(__name__)

Dependency = Tuple[str, Token]
"""A parameter name paired with the token injected into it."""


class DependencyResolver:
    """Validates and injects the constructor/factory dependencies of providers.

    Dependency tokens come from parameter annotations: an ``Inject`` marker
    inside ``Annotated`` wins, otherwise the annotated type is the token.
    Parameters with a default value and no ``Inject`` marker are left to their
    default.

    Attributes:
        _modules: Registry of resolved modules and the backing container.
    """

    def __init__(self, modules: "ModuleContainer") -> None:
        self._modules = modules

    # ------------------------------------------------------------------
    # Dependency discovery
    # ------------------------------------------------------------------

    def get_class_dependencies(self, cls: type) -> List[Dependency]:
        if cls.__init__ is object.__init__:
            return []
        return self._get_dependencies(cls.__init__, cls, skip_first=True)

    def get_factory_dependencies(self, factory: Callable[..., Any]) -> List[Dependency]:
        return self._get_dependencies(factory, factory, skip_first=False)

    def _get_dependencies(self, func: Callable[..., Any], owner: Any, skip_first: bool) -> List[Dependency]:
        try:
            signature = inspect.signature(func)
            hints = get_type_hints(func, include_extras=True)
        except (NameError, TypeError, ValueError) as e:
            raise ModuleResolutionError(
                reason=f"Cannot read the dependencies of '{token_name(owner)}': {e}",
                previous=e,
            ).for_class(owner)

        dependencies: List[Dependency] = []
        parameters = list(signature.parameters.values())
        if skip_first:
            parameters = parameters[1:]

        for param in parameters:
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            hint = hints.get(param.name)
            token = None
            if get_origin(hint) is Annotated:
                base, *metadata = get_args(hint)
                for marker in metadata:
                    if isinstance(marker, Inject):
                        token = marker.token
                if token is None and param.default is inspect.Parameter.empty:
                    token = base
            elif hint is not None and param.default is inspect.Parameter.empty:
                token = hint

            if token is not None:
                dependencies.append((param.name, token))
            elif param.default is inspect.Parameter.empty:
                raise ModuleResolutionError(
                    reason=(
                        f"Parameter '{param.name}' of '{token_name(owner)}' has neither a type hint "
                        f"nor an Inject marker."
                    )
                ).for_class(owner)

        return dependencies

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_class_dependencies(self, resolved_module: ResolvedModule, cls: type) -> List[Dependency]:
        """Check that every dependency of ``cls`` is visible from ``resolved_module``.

        Raises:
            ModuleResolutionError: If ``cls`` has dependencies but is neither
                ``@injectable`` nor a controller, or a dependency is not visible.
        """
        dependencies = self.get_class_dependencies(cls)
        if not dependencies:
            return []

        if not AttributeScanner.is_injectable(cls) and not AttributeScanner.is_rest_controller(cls):
            raise ModuleResolutionError(
                reason=f"Class '{cls.__name__}' must be injectable to inject dependencies to it."
            ).for_class(cls)

        self._validate_dependencies(resolved_module, dependencies, cls)
        return dependencies

    def validate_factory_dependencies(
        self,
        resolved_module: ResolvedModule,
        factory: Callable[..., Any],
    ) -> List[Dependency]:
        dependencies = self.get_factory_dependencies(factory)
        if dependencies:
            self._validate_dependencies(resolved_module, dependencies, factory)
        return dependencies

    def _validate_dependencies(
        self,
        resolved_module: ResolvedModule,
        dependencies: List[Dependency],
        target: Any,
    ) -> None:
        injection_for = token_name(target)

        for _, token in dependencies:
            if self._modules.is_framework_dependency(token):
                continue
            if resolved_module.provides(token):
                continue
            if self._is_exported_by_import(resolved_module, token, injection_for, target):
                continue

            owner = self._modules.get_resolved_module_by_dependency_key(token)
            if owner is not None and owner.is_global:
                if not owner.exports_token(token):
                    raise ModuleResolutionError(
                        reason=(
                            f"Dependency '{token_name(token)}' must be exported by a global module "
                            f"'{owner.name}' before injecting it in '{injection_for}'."
                        )
                    ).for_class(target)
                continue

            raise ModuleResolutionError(
                reason=(
                    f"Undefined dependency '{token_name(token)}' must be provided by a module "
                    f"'{resolved_module.name}' before injecting it in '{injection_for}'."
                )
            ).for_class(target)

    def _is_exported_by_import(
        self,
        resolved_module: ResolvedModule,
        token: Token,
        injection_for: str,
        target: Any,
    ) -> bool:
        for imported_class in resolved_module.imports_as_classes:
            imported = self._modules.get_resolved_module_by_key(imported_class)
            if imported is None:
                raise ModuleResolutionError(
                    reason=(
                        f"Module '{imported_class.__name__}' cannot be validated as it does not exist "
                        f"in the context or resolved."
                    )
                ).for_class(target)
            if imported.provides(token):
                if not imported.exports_token(token):
                    raise ModuleResolutionError(
                        reason=(
                            f"Dependency '{token_name(token)}' must be exported by a module "
                            f"'{imported.name}' before injecting it in '{injection_for}'."
                        )
                    ).for_class(target)
                return True
        return False

    # ------------------------------------------------------------------
    # Instantiation
    # ------------------------------------------------------------------

    def resolve(self, resolved_module: ResolvedModule, class_or_instance: Any, validate: bool = False) -> Any:
        """Instantiate a class with its dependencies injected.

        Instances are returned unchanged. After construction, an
        ``on_module_init(resolved_module)`` method on the instance is called.

        Args:
            resolved_module: Module the class is resolved on behalf of.
            class_or_instance: A class to instantiate, or an instance.
            validate: Whether to run the visibility validation first.

        Returns:
            The built instance.

        Example:
            >>> guard = resolver.resolve(users_module, AdminGuard, validate=True)
        """
        if not isinstance(class_or_instance, type):
            return class_or_instance

        if validate:
            dependencies = self.validate_class_dependencies(resolved_module, class_or_instance)
        else:
            dependencies = self.get_class_dependencies(class_or_instance)

        instance = class_or_instance(**self._inject(dependencies))
        logger.debug("Instantiated %s for %s", class_or_instance.__name__, resolved_module.name)

        on_module_init = getattr(instance, "on_module_init", None)
        if callable(on_module_init):
            on_module_init(resolved_module)
        return instance

    def resolve_factory(
        self,
        resolved_module: ResolvedModule,
        factory: Callable[..., Any],
        validate: bool = False,
    ) -> Any:
        """Invoke a factory with its dependencies injected and return its result."""
        if validate:
            dependencies = self.validate_factory_dependencies(resolved_module, factory)
        else:
            dependencies = self.get_factory_dependencies(factory)
        return factory(**self._inject(dependencies))

    def resolve_usable(self, resolved_module: ResolvedModule, usable: Union[type, str, Any]) -> Any:
        """Resolve a guard, interceptor, pipe, filter or middleware entry.

        A class is resolved with validation, a string token is fetched from the
        container and any other object is used as-is.
        """
        if isinstance(usable, str):
            return self.fetch(usable)
        return self.resolve(resolved_module, usable, validate=True)

    def _inject(self, dependencies: List[Dependency]) -> Dict[str, Any]:
        return {name: self.fetch(token) for name, token in dependencies}

    def fetch(self, token: Token) -> Any:
        """Return the value of ``token``: a fresh one for transient providers, the cached one otherwise."""
        provider = self._modules.get_provider_by_token(token)
        if provider is not None and provider.scope == Lifetime.TRANSIENT:
            return self._modules.make(token)
        return self._modules.get(token)

import logging
from typing import Any, Callable, Dict

from modulepress.application.circular_detector import CircularDependencyDetector
from modulepress.application.lifetime_manager import LifetimeManager
from modulepress.domain import (
    DependencyMetadata,
    IContainer,
    ILifetimeManager,
    Registration,
    Token,
    UnresolvableError,
)

logger = logging.getLogger(__name__)


class DIContainer(IContainer):
    """Token to value backing store of an application.

    Entries are registered during boot and materialized lazily. ``get`` shares
    one value per token, ``make`` builds a fresh one on every call and is what
    the dependency resolver uses for transient providers.

    Attributes:
        _registry: Dictionary mapping tokens to their entry.
        _lifetime_manager: Component building and caching values.
        _circular_detector: Component detecting tokens that need themselves.
    """

    def __init__(self) -> None:
        self._registry: Dict[Token, DependencyMetadata] = {}
        self._lifetime_manager: ILifetimeManager = LifetimeManager()
        self._circular_detector = CircularDependencyDetector()

    def set(self, token: Token, factory: Callable[[], Any]) -> None:
        """Register a lazy factory for a token.

        Registering a token again replaces the previous entry and drops any
        value already cached for it.

        Args:
            token: The token to register.
            factory: Zero-argument callable building the value.

        Example:
            >>> container.set(UsersService, lambda: UsersService(container.get(UsersRepository)))
        """
        if token in self._registry:
            logger.debug("Replacing container entry for %r", token)
        self._registry[token] = DependencyMetadata(
            registration=Registration(token=token, builder=factory),
        )

    def set_instance(self, token: Token, value: Any) -> None:
        """Register an already built value for a token."""
        self._registry[token] = DependencyMetadata(
            registration=Registration(token=token, builder=lambda: value),
            cached_instance=value,
            is_cached=True,
        )

    def get(self, token: Token) -> Any:
        """Return the shared value of ``token``, materializing it on first call.

        Raises:
            UnresolvableError: If nothing is registered for ``token`` or its builder failed.
            CircularDependencyError: If ``token`` is requested while it is being built.
        """
        metadata = self._lookup(token)
        if metadata.is_cached:
            metadata.resolution_count += 1
            return metadata.cached_instance

        with self._circular_detector.materializing(token):
            instance = self._lifetime_manager.get_or_create(metadata)
        metadata.resolution_count += 1
        return instance

    def make(self, token: Token) -> Any:
        """Build a fresh value of ``token``; nothing is cached.

        Raises:
            UnresolvableError: If nothing is registered for ``token`` or its builder failed.
            CircularDependencyError: If ``token`` is requested while it is being built.
        """
        metadata = self._lookup(token)
        with self._circular_detector.materializing(token):
            instance = self._lifetime_manager.create(metadata)
        metadata.resolution_count += 1
        return instance

    def has(self, token: Token) -> bool:
        return token in self._registry

    def get_registry_copy(self) -> Dict[Token, DependencyMetadata]:
        return self._registry.copy()

    def clear(self) -> None:
        """Clear all registrations and cached values."""
        self._lifetime_manager.clear_cache(self._registry)
        self._registry.clear()
        self._circular_detector.clear()

    def _lookup(self, token: Token) -> DependencyMetadata:
        try:
            return self._registry[token]
        except KeyError:
            raise UnresolvableError(token, "No entry is registered for this token") from None
        except TypeError:
            raise UnresolvableError(token, "Tokens must be hashable") from None

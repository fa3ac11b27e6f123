from typing import Any, Dict

from modulepress.domain import (
    BaseFrameworkException,
    DependencyMetadata,
    FinalizedResponse,
    ILifetimeManager,
    Token,
    UnresolvableError,
)


class LifetimeManager(ILifetimeManager):
    """Materializes container entries.

    Cached values live on the entry itself (``DependencyMetadata``), so the
    manager holds no state of its own. Builders raising anything other than a
    framework exception are reported as :class:`UnresolvableError` with the
    original exception chained.
    """

    def get_or_create(self, metadata: DependencyMetadata) -> Any:
        """Return the cached value of an entry, building it on first call.

        Args:
            metadata: The container entry.

        Returns:
            The value shared by every ``get`` of this token.

        Example:
            >>> first = manager.get_or_create(metadata)
            >>> assert manager.get_or_create(metadata) is first
        """
        if not metadata.is_cached:
            metadata.cached_instance = self._build(metadata)
            metadata.is_cached = True
        return metadata.cached_instance

    def create(self, metadata: DependencyMetadata) -> Any:
        """Build a fresh value, leaving the cache untouched."""
        return self._build(metadata)

    def clear_cache(self, registry: Dict[Token, DependencyMetadata]) -> None:
        for metadata in registry.values():
            metadata.cached_instance = None
            metadata.is_cached = False

    def _build(self, metadata: DependencyMetadata) -> Any:
        token = metadata.registration.token
        try:
            return metadata.registration.builder()
        except (BaseFrameworkException, FinalizedResponse):
            raise
        except Exception as e:
            raise UnresolvableError(token, f"Failed to create instance: {e}", previous=e) from e

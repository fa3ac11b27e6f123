"""Application layer - Provider instantiation cycle detection."""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List

from modulepress.domain import CircularDependencyError, Token
from modulepress.domain.exceptions import token_name

logger = logging.getLogger(__name__)


class CircularDependencyDetector:
    """Tracks which provider tokens are being materialized on the current thread.

    Module import cycles are caught by the discovery walk. This covers a
    provider whose factory asks the container, directly or through other
    providers, for a token that is still being materialized further up.

    Attributes:
        _local: Thread-local storage holding the tokens under construction.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _pending(self) -> List[Token]:
        if not hasattr(self._local, "pending"):
            self._local.pending = []
        return self._local.pending

    @contextmanager
    def materializing(self, token: Token) -> Iterator[None]:
        """Hold ``token`` as under construction for the duration of the block.

        Args:
            token: The provider token the container was asked for.

        Raises:
            CircularDependencyError: If ``token`` is already under construction.
                The reported chain starts and ends at ``token``.

        Example:
            >>> with detector.materializing(UsersService):
            ...     with detector.materializing(MailerService):
            ...         with detector.materializing(UsersService):  # Raises
            ...             pass
        """
        pending = self._pending()
        if token in pending:
            chain = pending[pending.index(token):] + [token]
            logger.debug("Provider cycle through %s", " -> ".join(token_name(t) for t in chain))
            raise CircularDependencyError(chain)

        pending.append(token)
        try:
            yield
        finally:
            pending.pop()

    def in_progress(self) -> List[Token]:
        """Tokens currently under construction, outermost first."""
        return list(self._pending())

    def describe(self) -> str:
        """Readable path of the tokens under construction, e.g. ``"Users -> Mailer"``."""
        return " -> ".join(token_name(token) for token in self._pending())

    def clear(self) -> None:
        if hasattr(self._local, "pending"):
            self._local.pending.clear()

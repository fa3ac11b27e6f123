"""Application layer - Linked interceptor chain around a handler invocation."""

from typing import TYPE_CHECKING, Any, Callable, List, Sequence

from modulepress.domain import Interceptor

if TYPE_CHECKING:
    from modulepress.application.execution_context import ExecutionContext


class CallHandler:
    """The innermost link: invokes the route handler itself.

    Attributes:
        callback: Zero-argument callable performing the handler call.
    """

    def __init__(self, callback: Callable[[], Any]) -> None:
        self.callback = callback

    def handle(self) -> Any:
        return self.callback()

    def chain(self) -> List[Interceptor]:
        """Interceptors wrapped around this link, outermost first."""
        return []


class InterceptorCallHandler(CallHandler):
    """A link running ``interceptor`` around the rest of the chain.

    Attributes:
        interceptor: The interceptor of this link.
        context: Execution context handed to the interceptor.
        next_handler: Everything inside this link.
    """

    def __init__(self, interceptor: Interceptor, context: "ExecutionContext", next_handler: CallHandler) -> None:
        super().__init__(next_handler.handle)
        self.interceptor = interceptor
        self.context = context
        self.next_handler = next_handler

    def handle(self) -> Any:
        return self.interceptor.intercept(self.context, self.next_handler)

    def chain(self) -> List[Interceptor]:
        return [self.interceptor] + self.next_handler.chain()


def build_chain(
    interceptors: Sequence[Interceptor],
    context: "ExecutionContext",
    callback: Callable[[], Any],
) -> CallHandler:
    """Fold ``interceptors`` right-to-left around ``callback``.

    The first interceptor becomes the outermost link, so it runs first on the
    way in and last on the way out.

    Example:
        >>> handler = build_chain([Timing(), Doubling()], context, lambda: 21)
        >>> [type(i).__name__ for i in handler.chain()]
        ['Timing', 'Doubling']
    """
    handler = CallHandler(callback)
    for interceptor in reversed(interceptors):
        handler = InterceptorCallHandler(interceptor, context, handler)
    return handler

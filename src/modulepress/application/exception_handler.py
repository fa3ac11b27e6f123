"""Application layer - Central exception filter chain."""

import logging
import traceback
from typing import TYPE_CHECKING, Any, List, NoReturn

from pydantic import BaseModel, ConfigDict

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.core_exception_filter import CoreExceptionFilter
from modulepress.application.execution_context import ExecutionContext
from modulepress.application.resolved_module import ResolvedModule
from modulepress.config import AppSettings
from modulepress.domain import (
    BaseFrameworkException,
    BaseResponse,
    FinalizedResponse,
    InternalServerError,
    IRenderer,
)

if TYPE_CHECKING:
    from modulepress.application.module_container import ModuleContainer

logger = logging.getLogger(__name__)

GLOBAL_FILTERS_KEY = "__global__"


class ResolvedFilter(BaseModel):
    """An exception filter entry together with the module it is resolved against.

    Attributes:
        key: ``Class::method`` of the invocation that registered it, or the global key.
        filter: Filter class, string token or instance.
        resolved_module: Module the filter class is resolved on behalf of.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    filter: Any
    resolved_module: ResolvedModule


class ExceptionHandler:
    """Turns any failure of a pipeline into a finalized response.

    :meth:`handle` never returns: it always ends by raising
    :class:`FinalizedResponse` carrying the response to send.
    """

    def __init__(self, modules: "ModuleContainer", settings: AppSettings, renderer: IRenderer) -> None:
        self._modules = modules
        self._settings = settings
        self._renderer = renderer

    def handle(self, exception: BaseException, context: ExecutionContext) -> NoReturn:
        """Run the filter chain for ``exception``.

        Filters scoped to ``context`` are tried before global ones, each list
        walked from the most recently added entry. The first filter whose
        ``@catch_exception`` allowlist is empty or matches produces the response.
        When none does, :class:`CoreExceptionFilter` formats it.

        Args:
            exception: The failure to handle.
            context: Execution context of the failing unit of work.

        Raises:
            FinalizedResponse: Always, carrying the response to send.
        """
        if isinstance(exception, FinalizedResponse):
            raise exception

        if not isinstance(exception, BaseFrameworkException):
            exception = self.wrap_unknown_exception(exception)

        for resolved in reversed(self._global_filters() + context.get_exception_filters()):
            try:
                filter_class = self._filter_class(resolved)
                accepted = AttributeScanner.scan_catch_exceptions(filter_class)
                if accepted and not any(isinstance(exception, exception_type) for exception_type in accepted):
                    continue
                exception_filter = self._modules.resolver.resolve_usable(resolved.resolved_module, resolved.filter)
                response = exception_filter.catch_exception(exception, context)
            except FinalizedResponse:
                raise
            except BaseFrameworkException as e:
                logger.debug("Exception filter %r raised %s, continuing", resolved.filter, e)
                exception = e
                continue
            except Exception as e:
                exception = self.wrap_unknown_exception(e)
                continue

            if not isinstance(response, BaseResponse):
                exception = InternalServerError(
                    reason=f"Exception filter returned an unsupported response: {type(response).__name__}"
                ).for_class(filter_class)
                continue

            logger.debug("%s handled by %s", type(exception).__name__, type(exception_filter).__name__)
            raise FinalizedResponse(response)

        core_filter = CoreExceptionFilter(self._renderer, self._settings)
        raise FinalizedResponse(core_filter.catch_exception(exception, context))

    def wrap_unknown_exception(self, exception: BaseException) -> BaseFrameworkException:
        """Wrap a foreign exception into an :class:`InternalServerError`.

        The original message only becomes the reason in debug mode; the
        location of the innermost frame is kept either way.
        """
        logger.warning("Unhandled %s wrapped as InternalServerError", type(exception).__name__, exc_info=exception)
        wrapped = InternalServerError(previous=exception)
        wrapped.set_reason(str(exception) if self._settings.debug else "")
        frames = traceback.extract_tb(exception.__traceback__)
        if frames:
            wrapped.set_file(frames[-1].filename).set_line(frames[-1].lineno)
        return wrapped

    def _global_filters(self) -> List[ResolvedFilter]:
        return [
            ResolvedFilter(key=GLOBAL_FILTERS_KEY, filter=usable, resolved_module=module)
            for module, usable in self._modules.get_global_filters()
        ]

    def _filter_class(self, resolved: ResolvedFilter) -> type:
        usable = resolved.filter
        if isinstance(usable, str):
            return type(self._modules.get(usable))
        return usable if isinstance(usable, type) else type(usable)

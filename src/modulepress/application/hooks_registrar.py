"""Application layer - Registration and execution of action/filter hooks."""

import logging
from typing import TYPE_CHECKING, Any, Callable, List

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.components import HookComponent
from modulepress.application.exception_handler import ExceptionHandler, ResolvedFilter
from modulepress.application.execution_context import (
    ExecutionContext,
    HookContext,
    activate,
    current_execution_context,
)
from modulepress.domain import HookType, IHostPlatform, ModuleResolutionError, UnauthorizedError

if TYPE_CHECKING:
    from modulepress.application.module_container import ModuleContainer

logger = logging.getLogger(__name__)


class HooksRegistrar:
    """Binds provider methods to the host's named events.

    Each invocation pushes a :class:`HookContext`, registers the method's
    exception filters, evaluates guards then checks, and calls the provider
    method with the hook arguments. A failed check returns the configured
    hook argument without calling the method, so filters pass their value
    through unchanged.

    Failures are handed to the :class:`ExceptionHandler`, which raises
    :class:`FinalizedResponse` to the code that fired the hook.
    """

    def __init__(self, modules: "ModuleContainer", exception_handler: ExceptionHandler, host: IHostPlatform) -> None:
        self._modules = modules
        self._exception_handler = exception_handler
        self._host = host

    def register_hookables(self) -> "HooksRegistrar":
        for component in self._modules.get_hooks():
            hookable = component.hookable
            callback = self._make_callback(component)
            if hookable.hook_type == HookType.FILTER:
                self._host.add_filter(hookable.hook_name, callback, hookable.priority)
            else:
                self._host.add_action(hookable.hook_name, callback, hookable.priority)
            logger.info(
                "Registered %s '%s' (priority %d) on %s",
                hookable.hook_type,
                hookable.hook_name,
                hookable.priority,
                component.key,
            )
        return self

    def _make_callback(self, component: HookComponent) -> Callable[..., Any]:
        is_filter = component.hookable.hook_type == HookType.FILTER

        def callback(*args: Any) -> Any:
            result = self.process_hook(component, args)
            return result if is_filter else None

        return callback

    def process_hook(self, component: HookComponent, args: tuple) -> Any:
        """Run one hook invocation.

        Args:
            component: The hook binding being fired.
            args: Arguments the hook was fired with.

        Returns:
            The method's result, or ``args[default_return_arg]`` when a check fails.

        Raises:
            FinalizedResponse: When the invocation failed, carrying the formatted error.
        """
        context = current_execution_context()
        if context is None:
            context = ExecutionContext(json_request=self._host.is_json_request())
        with activate(context):
            return self._process(component, args, context)

    def _process(self, component: HookComponent, args: tuple, context: ExecutionContext) -> Any:
        resolved_module = component.resolved_module
        provider_class = component.declaring_class
        method = component.method

        context.push_hook_context(
            HookContext(
                hookable=component.hookable,
                provider_class=provider_class,
                method_name=component.method_name,
                args=args,
            )
        )
        try:
            for exception_filter in AttributeScanner.scan_use_exception_filters(cls=provider_class, method=method):
                context.add_exception_filter(
                    ResolvedFilter(key=component.key, filter=exception_filter, resolved_module=resolved_module)
                )

            for guard in self._resolve_all(component, AttributeScanner.scan_use_guards(cls=provider_class, method=method)):
                if not guard.can_activate(context):
                    logger.debug("Guard %s rejected hook %s", type(guard).__name__, component.key)
                    raise UnauthorizedError().for_class_method(provider_class, component.method_name)

            for checks_meta in AttributeScanner.scan_use_checks(method):
                for check in self._resolve_all(component, checks_meta.checks):
                    if check.can_activate(context):
                        continue
                    logger.debug("Check %s failed for hook %s", type(check).__name__, component.key)
                    if checks_meta.default_return_arg >= len(args):
                        raise ModuleResolutionError(
                            reason=(
                                f"Default return argument {checks_meta.default_return_arg} is out of range "
                                f"for hook '{component.hookable.hook_name}' fired with {len(args)} argument(s)."
                            )
                        ).for_class_method(provider_class, component.method_name)
                    return args[checks_meta.default_return_arg]

            instance = self._modules.get(component.provider.provide)
            return getattr(instance, component.method_name)(*args)
        except Exception as e:
            self._exception_handler.handle(e, context)
        finally:
            context.pop_hook_context()
            context.remove_exception_filters(component.key)

    def _resolve_all(self, component: HookComponent, usables: List[Any]) -> List[Any]:
        return [self._modules.resolver.resolve_usable(component.resolved_module, usable) for usable in usables]

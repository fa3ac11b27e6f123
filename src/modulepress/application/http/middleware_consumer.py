import re
from typing import Any, List

from pydantic import ValidationError as PydanticValidationError

from modulepress.domain import (
    ExactRule,
    MiddlewareRegistration,
    MiddlewareRule,
    ModuleResolutionError,
    RegexRule,
    WildcardRule,
)


class MiddlewareConsumer:
    """Builder modules use to register middleware.

    Example:
        >>> class AppModule(BaseModule):
        ...     def middlewares(self, consumer: MiddlewareConsumer) -> None:
        ...         consumer.apply(AuthMiddleware).exclude("users/admin").for_routes(
        ...             {"path": "users/:id", "methods": ["GET"]},
        ...         )
    """

    def __init__(self) -> None:
        self._registrations: List[MiddlewareRegistration] = []

    def apply(self, *middlewares: Any) -> "MiddlewareConsumer":
        """Start a registration; entries are callables or classes with a ``use`` method."""
        self._registrations.append(MiddlewareRegistration(middlewares=list(middlewares)))
        return self

    def exclude(self, *rules: Any) -> "MiddlewareConsumer":
        """Routes the current registration never runs for."""
        self._current().exclusions.extend(self.normalize_rule(rule) for rule in rules)
        return self

    def for_routes(self, *rules: Any) -> "MiddlewareConsumer":
        """Routes the current registration runs for."""
        self._current().routes.extend(self.normalize_rule(rule) for rule in rules)
        return self

    def get_registrations(self) -> List[MiddlewareRegistration]:
        return list(self._registrations)

    def _current(self) -> MiddlewareRegistration:
        if not self._registrations:
            raise ModuleResolutionError(reason="Call 'apply()' before declaring middleware routes or exclusions.")
        return self._registrations[-1]

    @staticmethod
    def normalize_rule(rule: Any) -> MiddlewareRule:
        """Turn a declared rule into a rule object.

        ``"*"`` is a wildcard, a compiled pattern is a regex rule and any other
        string is an exact path. Dictionaries carry ``path`` and ``methods``.

        Raises:
            ModuleResolutionError: If the rule has an unsupported shape.
        """
        if isinstance(rule, (WildcardRule, ExactRule, RegexRule)):
            return rule
        if isinstance(rule, str):
            return WildcardRule() if rule == "*" else ExactRule(path=rule)
        if isinstance(rule, re.Pattern):
            return RegexRule(pattern=rule)
        if isinstance(rule, dict):
            path = rule.get("path")
            methods = rule.get("methods", ["*"])
            if not isinstance(path, (str, re.Pattern)):
                raise ModuleResolutionError(reason="Path must be a string or a compiled pattern.")
            if not isinstance(methods, (list, tuple)):
                raise ModuleResolutionError(reason="Methods must be a list.")
            methods = [str(method) for method in methods]
            try:
                if isinstance(path, re.Pattern):
                    return RegexRule(pattern=path, methods=methods)
                if path == "*":
                    return WildcardRule(methods=methods)
                return ExactRule(path=path, methods=methods)
            except PydanticValidationError as e:
                raise ModuleResolutionError(reason=f"Invalid middleware rule {rule!r}.", previous=e) from e
        raise ModuleResolutionError(reason="Invalid rule format given for middleware.")

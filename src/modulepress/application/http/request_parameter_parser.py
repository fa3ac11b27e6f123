"""Application layer - Binding, casting and validation of handler parameters."""

import inspect
import json
import re
from functools import lru_cache
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from modulepress.domain import (
    BadRequestError,
    Body,
    ModuleResolutionError,
    Param,
    PipeTransform,
    Query,
    Req,
    RequestParameter,
    Res,
    RestRequest,
    RestResponse,
    ValidationError,
)

_BUILTIN_TYPES = (int, float, str, bool, list, dict)
_NUMERIC = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")
_TRUE_STRINGS = ("true", "1", "on", "yes")
_FALSE_STRINGS = ("false", "0", "off", "no")

_MISSING = object()


@lru_cache(maxsize=None)
def _rule_adapter(value_type: type, rule: Any) -> TypeAdapter:
    return TypeAdapter(Annotated[value_type, rule])


@lru_cache(maxsize=None)
def _dto_adapter(dto_type: Any) -> TypeAdapter:
    return TypeAdapter(dto_type)


class RequestParameterParser:
    """Builds the keyword arguments of a route handler from the request.

    Parameters annotated with :class:`Body`, :class:`Query` or :class:`Param`
    are looked up by dotted key in the JSON body, the query string or the
    path parameters. :class:`Req` and :class:`Res` (or a plain
    ``RestRequest``/``RestResponse`` annotation) inject the raw objects.

    Example:
        >>> def show(self, post_id: Annotated[int, Param("id")]): ...
        >>> parser.parse_handler_arguments(PostsController.show, request, response, [])
        {'post_id': 7}
    """

    def __init__(self, resolve_pipe: Callable[[Any], PipeTransform]) -> None:
        """
        Args:
            resolve_pipe: Turns a declared pipe entry into a pipe instance.
        """
        self._resolve_pipe = resolve_pipe

    def parse_handler_arguments(
        self,
        handler: Callable[..., Any],
        request: RestRequest,
        response: RestResponse,
        pipes: Sequence[PipeTransform],
    ) -> Dict[str, Any]:
        """Bind every parameter of ``handler`` except ``self``.

        Args:
            handler: The unbound controller method.
            request: The incoming request.
            response: The response being built.
            pipes: Resolved request-level pipes (global, class, method).

        Returns:
            Keyword arguments for the handler call.

        Raises:
            BadRequestError: A required value is missing or has the wrong type.
            ValidationError: A DTO or a validation rule rejected the value.
            ModuleResolutionError: A parameter has no binding and no default.
        """
        try:
            signature = inspect.signature(handler)
            hints = get_type_hints(handler, include_extras=True)
        except (NameError, TypeError, ValueError) as e:
            raise ModuleResolutionError(
                reason=f"Cannot read the parameters of '{handler.__qualname__}': {e}",
                previous=e,
            ) from e

        arguments: Dict[str, Any] = {}
        for parameter in list(signature.parameters.values())[1:]:
            if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            annotation, marker = self._split_annotation(hints.get(parameter.name, inspect.Parameter.empty))

            if isinstance(marker, Req) or (marker is None and annotation is RestRequest):
                arguments[parameter.name] = request
            elif isinstance(marker, Res) or (marker is None and annotation is RestResponse):
                arguments[parameter.name] = response
            elif isinstance(marker, Body):
                arguments[parameter.name] = self.parse_body_parameter(parameter, annotation, request, marker, pipes)
            elif isinstance(marker, Query):
                arguments[parameter.name] = self.parse_query_parameter(parameter, annotation, request, marker, pipes)
            elif isinstance(marker, Param):
                arguments[parameter.name] = self.parse_param_parameter(parameter, annotation, request, marker, pipes)
            elif parameter.default is not inspect.Parameter.empty:
                arguments[parameter.name] = parameter.default
            else:
                raise ModuleResolutionError(
                    reason=(
                        f"Parameter '{parameter.name}' of '{handler.__qualname__}' must be bound with "
                        f"Body, Query, Param, Req or Res, or have a default value."
                    )
                ).for_class(handler)
        return arguments

    def parse_body_parameter(
        self,
        parameter: inspect.Parameter,
        annotation: Any,
        request: RestRequest,
        body: Body,
        pipes: Sequence[PipeTransform],
    ) -> Any:
        section = request.json_body if request.json_body is not None else {}
        return self.parse_parameter(parameter, annotation, section, body, pipes)

    def parse_query_parameter(
        self,
        parameter: inspect.Parameter,
        annotation: Any,
        request: RestRequest,
        query: Query,
        pipes: Sequence[PipeTransform],
    ) -> Any:
        return self.parse_parameter(parameter, annotation, request.query_params, query, pipes)

    def parse_param_parameter(
        self,
        parameter: inspect.Parameter,
        annotation: Any,
        request: RestRequest,
        param: Param,
        pipes: Sequence[PipeTransform],
    ) -> Any:
        return self.parse_parameter(parameter, annotation, request.path_params, param, pipes)

    def parse_parameter(
        self,
        parameter: inspect.Parameter,
        annotation: Any,
        section: Any,
        marker: RequestParameter,
        pipes: Sequence[PipeTransform],
    ) -> Any:
        """Extract, transform, cast and validate one value.

        A missing key falls back to the parameter default, which is checked
        against the rules but neither piped nor cast. Without a default the
        request is rejected with ``"{key} is required"``.
        """
        key = marker.key
        expected, optional = self._unwrap_optional(annotation)

        if key:
            value = self._lookup(section, key)
            if value is _MISSING:
                if parameter.default is not inspect.Parameter.empty:
                    self.validate_value(parameter.default, marker.rules, key)
                    return parameter.default
                raise BadRequestError(f"{key} is required")
        else:
            value = section

        for pipe in list(pipes) + [self._resolve_pipe(pipe) for pipe in marker.pipes]:
            value = pipe.transform(value)

        if value is None and optional:
            return None

        if expected is inspect.Parameter.empty or expected is Any:
            self.validate_value(value, marker.rules, key)
            return value

        builtin = self._builtin_type(expected)
        if builtin is not None:
            return self.handle_builtin_type_value(builtin, value, key, marker.rules, marker.casting)
        return self.handle_dto_value(expected, value, key, marker.rules)

    def handle_builtin_type_value(
        self,
        expected: type,
        value: Any,
        key: str,
        rules: List[Any],
        casting: bool,
    ) -> Any:
        if not self._is_instance(value, expected):
            cast_value = self.type_cast(value, expected) if casting else None
            if cast_value is None:
                raise BadRequestError(
                    f"Expected a value of type '{expected.__name__}' for parameter '{key}', "
                    f"but got '{type(value).__name__}'"
                )
            value = cast_value

        self.validate_value(value, rules, key)
        return value

    def handle_dto_value(self, dto_type: Any, value: Any, key: str, rules: List[Any]) -> Any:
        """Hydrate and validate a DTO from a mapping."""
        if not (isinstance(dto_type, type) and isinstance(value, dto_type)):
            if not isinstance(value, dict):
                raise BadRequestError("Expected an array or object.")
            try:
                value = _dto_adapter(dto_type).validate_python(value)
            except PydanticValidationError as e:
                raise self._to_validation_error(e, key) from e

        self.validate_value(value, rules, key)
        return value

    def validate_value(self, value: Any, rules: List[Any], key: str) -> None:
        """Check ``value`` against every rule, aggregating the failures.

        Raises:
            ValidationError: With one entry per failing key.
            ModuleResolutionError: If a rule cannot apply to the value's type.
        """
        if not rules or value is None:
            return

        field = key or "value"
        messages: List[str] = []
        for rule in rules:
            try:
                adapter = _rule_adapter(type(value), rule)
            except Exception as e:
                raise ModuleResolutionError(
                    reason=f"Rule {rule!r} cannot be applied to a value of type '{type(value).__name__}': {e}",
                    previous=e,
                ) from e
            try:
                adapter.validate_python(value)
            except PydanticValidationError as e:
                messages.extend(error["msg"] for error in e.errors())

        if messages:
            raise ValidationError().set_errors({field: "; ".join(messages)})

    @staticmethod
    def type_cast(value: Any, expected: type) -> Any:
        """Best-effort cast of a scalar to ``expected``; ``None`` when not castable."""
        if expected is int:
            if isinstance(value, bool):
                return int(value)
            if isinstance(value, float) and value.is_integer():
                return int(value)
            if isinstance(value, str) and _INTEGER.match(value):
                return int(value)
            return None

        if expected is float:
            if isinstance(value, (int, bool)):
                return float(value)
            if isinstance(value, str) and _NUMERIC.match(value):
                return float(value)
            return None

        if expected is str:
            if isinstance(value, bool):
                return "true" if value else "false"
            if isinstance(value, (int, float)):
                return str(value)
            return None

        if expected is bool:
            if isinstance(value, (int, float)):
                return bool(value)
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True
                if lowered in _FALSE_STRINGS:
                    return False
            return None

        if expected in (list, dict):
            if expected is list and isinstance(value, tuple):
                return list(value)
            if isinstance(value, str):
                try:
                    decoded = json.loads(value)
                except ValueError:
                    return None
                return decoded if isinstance(decoded, expected) else None
            return None

        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _split_annotation(hint: Any) -> Tuple[Any, Any]:
        """Separate the value type from the binding marker of an annotation."""
        if get_origin(hint) is not Annotated:
            return hint, None
        base, *metadata = get_args(hint)
        for item in metadata:
            if item in (Req, Res):
                return base, item()
            if isinstance(item, (RequestParameter, Req, Res)):
                return base, item
        return base, None

    @staticmethod
    def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
        if get_origin(annotation) is Union:
            members = [member for member in get_args(annotation) if member is not type(None)]
            optional = len(members) < len(get_args(annotation))
            if len(members) == 1:
                return members[0], optional
            return Any, optional
        return annotation, False

    @staticmethod
    def _builtin_type(annotation: Any) -> Optional[type]:
        candidate = get_origin(annotation) or annotation
        return candidate if candidate in _BUILTIN_TYPES else None

    @staticmethod
    def _is_instance(value: Any, expected: type) -> bool:
        if expected in (int, float) and isinstance(value, bool):
            return False
        return isinstance(value, expected)

    @staticmethod
    def _lookup(section: Any, key: str) -> Any:
        current = section
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return _MISSING
        return current

    @staticmethod
    def _to_validation_error(error: PydanticValidationError, key: str) -> ValidationError:
        exception = ValidationError()
        for detail in error.errors():
            path = ".".join(str(part) for part in detail["loc"]) or key or "value"
            exception.attach_error(path, detail["msg"])
        return exception

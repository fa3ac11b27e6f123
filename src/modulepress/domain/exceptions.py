import inspect
from typing import Any, Dict, List, Optional


class BaseFrameworkException(Exception):
    """Base class of every exception the framework knows how to format.

    Besides the message, each exception carries the status code used for the
    formatted response, an optional developer facing ``reason``, an error map
    (``errors``), free-form ``data`` and the source location it is attributed to.

    Attributes:
        message: Human readable message, exposed in every response.
        status_code: HTTP-equivalent status code of the formatted response.
        reason: Developer facing explanation, only exposed in debug mode.
        errors: Field name to error message map (used by validation failures).
        data: Arbitrary additional payload.
        file: Source file the exception is attributed to.
        line: Source line the exception is attributed to.
    """

    default_message: str = "Framework Exception"
    default_status_code: int = 500

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        reason: str = "",
        previous: Optional[BaseException] = None,
    ) -> None:
        self.message = message if message is not None else self.default_message
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.reason = reason
        self.errors: Dict[str, Any] = {}
        self.data: Dict[str, Any] = {}
        self.file: Optional[str] = None
        self.line: Optional[int] = None
        super().__init__(self.message)
        if previous is not None:
            self.__cause__ = previous

    def __str__(self) -> str:
        return self.message

    @property
    def previous(self) -> Optional[BaseException]:
        """The wrapped exception, if any."""
        return self.__cause__

    def set_message(self, message: str) -> "BaseFrameworkException":
        self.message = message
        self.args = (message,)
        return self

    def set_reason(self, reason: str) -> "BaseFrameworkException":
        self.reason = reason
        return self

    def set_errors(self, errors: Dict[str, Any]) -> "BaseFrameworkException":
        self.errors = dict(errors)
        return self

    def attach_error(self, key: str, value: Any) -> "BaseFrameworkException":
        self.errors[key] = value
        return self

    def set_data(self, data: Dict[str, Any]) -> "BaseFrameworkException":
        self.data = dict(data)
        return self

    def attach_data(self, key: str, value: Any) -> "BaseFrameworkException":
        self.data[key] = value
        return self

    def set_file(self, file: Optional[str]) -> "BaseFrameworkException":
        self.file = file
        return self

    def set_line(self, line: Optional[int]) -> "BaseFrameworkException":
        self.line = line
        return self

    def for_class(self, cls: Any) -> "BaseFrameworkException":
        """Attribute this exception to the source location of a class.

        Args:
            cls: The class the failure belongs to.

        Returns:
            The exception itself, to allow ``raise Error(...).for_class(cls)``.
        """
        return self._locate(cls)

    def for_class_method(self, cls: Any, method_name: str) -> "BaseFrameworkException":
        """Attribute this exception to the source location of a method.

        Args:
            cls: The class declaring the method.
            method_name: Name of the method the failure belongs to.

        Returns:
            The exception itself.
        """
        return self._locate(getattr(cls, method_name, cls))

    def _locate(self, target: Any) -> "BaseFrameworkException":
        try:
            self.file = inspect.getsourcefile(target)
            self.line = inspect.getsourcelines(target)[1]
        except (OSError, TypeError):
            # Builtins and dynamically created objects have no source.
            pass
        return self


class FrameworkException(BaseFrameworkException):
    """Base class for wiring and validation failures raised by the framework itself."""


class ModuleResolutionError(FrameworkException):
    """Raised when the module graph or dependency wiring is misconfigured.

    This occurs when:
    - A module, controller or entity lacks its capability marker.
    - Modules import each other directly.
    - A provider declares no (or more than one) construction strategy.
    - An injected token is undefined, or provided but not exported.
    """

    default_message = "Module Resolution Exception"
    default_status_code = 500

    def __init__(self, message: Optional[str] = None, reason: str = "", previous: Optional[BaseException] = None) -> None:
        super().__init__(message, None, reason, previous)


class CircularDependencyError(ModuleResolutionError):
    """Raised when providers depend on each other while being instantiated.

    Attributes:
        dependency_chain: Tokens involved in the cycle, first token repeated at the end.
    """

    def __init__(self, dependency_chain: List[Any]) -> None:
        self.dependency_chain = dependency_chain
        chain = " -> ".join(token_name(token) for token in dependency_chain)
        super().__init__(reason=f"Circular dependency detected: {chain}")


class UnresolvableError(ModuleResolutionError):
    """Raised when the container cannot build a requested token.

    Attributes:
        token: The token that could not be resolved.
    """

    def __init__(self, token: Any, reason: Optional[str] = None, previous: Optional[BaseException] = None) -> None:
        self.token = token
        message = f"Cannot resolve dependency for token: {token_name(token)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(reason=message, previous=previous)


class ValidationError(FrameworkException):
    """Raised when bound request data violates its validation rules.

    ``errors`` aggregates one entry per violated field.
    """

    default_message = "Validation Exception"
    default_status_code = 422

    def __init__(self, message: Optional[str] = None, reason: str = "", previous: Optional[BaseException] = None) -> None:
        super().__init__(message, None, reason, previous)


class HttpException(BaseFrameworkException):
    """Base class of the HTTP status coded exceptions."""

    def __init__(self, message: Optional[str] = None, reason: str = "", previous: Optional[BaseException] = None) -> None:
        super().__init__(message, None, reason, previous)


class BadRequestError(HttpException):
    default_message = "Bad Request"
    default_status_code = 400


class UnauthorizedError(HttpException):
    default_message = "Unauthorized"
    default_status_code = 401


class ForbiddenError(HttpException):
    default_message = "Forbidden"
    default_status_code = 403


class NotFoundError(HttpException):
    default_message = "Not Found"
    default_status_code = 404


class MethodNotAllowedError(HttpException):
    default_message = "Method Not Allowed"
    default_status_code = 405


class NotAcceptableError(HttpException):
    default_message = "Not Acceptable"
    default_status_code = 406


class RequestTimeoutError(HttpException):
    default_message = "Request Timeout"
    default_status_code = 408


class ConflictError(HttpException):
    default_message = "Conflict"
    default_status_code = 409


class GoneError(HttpException):
    default_message = "Gone"
    default_status_code = 410


class PreconditionFailedError(HttpException):
    default_message = "Precondition Failed"
    default_status_code = 412


class PayloadTooLargeError(HttpException):
    default_message = "Payload Too Large"
    default_status_code = 413


class UnsupportedMediaTypeError(HttpException):
    default_message = "Unsupported Media Type"
    default_status_code = 415


class ImATeapotError(HttpException):
    default_message = "I'm a teapot"
    default_status_code = 418


class UnprocessableEntityError(HttpException):
    default_message = "Unprocessable Entity"
    default_status_code = 422


class InternalServerError(HttpException):
    default_message = "Internal Server Error"
    default_status_code = 500


class NotImplementedHttpError(HttpException):
    default_message = "Not Implemented"
    default_status_code = 501


class BadGatewayError(HttpException):
    default_message = "Bad Gateway"
    default_status_code = 502


class ServiceUnavailableError(HttpException):
    default_message = "Service Unavailable"
    default_status_code = 503


class GatewayTimeoutError(HttpException):
    default_message = "Gateway Timeout"
    default_status_code = 504


class HttpVersionNotSupportedError(HttpException):
    default_message = "HTTP Version Not Supported"
    default_status_code = 505


class FinalizedResponse(Exception):
    """Control-flow signal carrying a response that must be sent as-is.

    Raised by the exception handler once a filter produced a response, and by
    user code through :meth:`send` to bypass any remaining processing. It is not
    an error and is never formatted by exception filters.

    Attributes:
        response: The finalized response.
    """

    def __init__(self, response: Any) -> None:
        self.response = response
        super().__init__("Response already finalized")

    @classmethod
    def send(cls, response: Any) -> None:
        """Finalize ``response`` immediately."""
        raise cls(response)


def token_name(token: Any) -> str:
    return getattr(token, "__name__", None) or str(token)

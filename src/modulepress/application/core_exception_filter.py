import traceback
from typing import Any, Dict, List

from modulepress.application.execution_context import ExecutionContext
from modulepress.config import AppSettings
from modulepress.domain import (
    BaseFrameworkException,
    BaseResponse,
    ExceptionFilter,
    HtmlResponse,
    IRenderer,
    JsonResponse,
)


class CoreExceptionFilter(ExceptionFilter):
    """Default formatting of exceptions no other filter claimed.

    Inside a REST request the route's response gets ``{message, statusCode}``
    plus ``errors`` when present. Outside of one, a JSON or HTML response is
    built depending on what the request expects. Debug mode adds the reason,
    and for the configured verbose exception types the source location, the
    filter name and the stack trace.

    Subclass it to keep the shapes while changing a part of the output.
    """

    def __init__(self, renderer: IRenderer, settings: AppSettings, filter_name: str = "") -> None:
        self._renderer = renderer
        self._settings = settings
        self.caught_by = filter_name or type(self).__name__

    def catch_exception(self, exception: BaseFrameworkException, context: ExecutionContext) -> BaseResponse:
        rest_context = context.switch_to_rest_context()
        if rest_context is not None:
            response = rest_context.response
            response.set_data(self.build_payload(exception))
            response.set_status(exception.status_code)
            return response
        if context.json_request:
            return JsonResponse(data=self.build_payload(exception), status_code=exception.status_code)
        return HtmlResponse(
            html=self._renderer.render_exception(exception, debug=self._settings.debug),
            status_code=exception.status_code,
        )

    def build_payload(self, exception: BaseFrameworkException) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": exception.message,
            "statusCode": exception.status_code,
        }
        if exception.errors:
            data["errors"] = dict(exception.errors)
        if self._settings.debug:
            data["reason"] = exception.reason
            data.update(self.debugging_params(exception))
        return data

    def debugging_params(self, exception: BaseFrameworkException) -> Dict[str, Any]:
        # Exact class match: subclasses of a verbose type stay terse.
        if type(exception).__name__ not in self._settings.verbose_exceptions:
            return {}
        return {
            "file": exception.file,
            "line": exception.line,
            "filter": self.caught_by,
            "trace": self._trace(exception),
        }

    @staticmethod
    def _trace(exception: BaseException) -> List[Dict[str, Any]]:
        return [
            {"file": frame.filename, "line": frame.lineno, "function": frame.name}
            for frame in traceback.extract_tb(exception.__traceback__)
        ]

"""
HTTP request pipeline.

Route registration, middleware, parameter binding and the interceptor chain.
"""

from .call_handler import CallHandler, InterceptorCallHandler, build_chain
from .http import Http
from .middleware_consumer import MiddlewareConsumer
from .middleware_parser import MiddlewareParser
from .request_parameter_parser import RequestParameterParser

__all__ = [
    "Http",
    "CallHandler",
    "InterceptorCallHandler",
    "build_chain",
    "MiddlewareConsumer",
    "MiddlewareParser",
    "RequestParameterParser",
]

from enum import Enum


class Lifetime(str, Enum):
    """Defines the lifetime of a provided dependency.

    Attributes:
        SINGLETON: Single instance built lazily and shared for the process lifetime.
        TRANSIENT: New instance created every time the token is injected.
    """

    SINGLETON = "singleton"
    TRANSIENT = "transient"

    def __str__(self) -> str:
        return self.value


class RequestMethod(str, Enum):
    """HTTP verbs a route can be bound to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"

    def __str__(self) -> str:
        return self.value


class HookType(str, Enum):
    """Kind of host-platform event a hook handler is bound to.

    Attributes:
        ACTION: Side-effecting callback, its return value is discarded.
        FILTER: Value-transforming callback, its return value replaces the filtered value.
    """

    ACTION = "action"
    FILTER = "filter"

    def __str__(self) -> str:
        return self.value

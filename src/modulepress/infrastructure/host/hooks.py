from itertools import count
from typing import Any, Callable, Dict, List, Tuple

_Entry = Tuple[int, int, Callable[..., Any]]


class HookRegistry:
    """In-process named events, run by priority then registration order.

    Actions are called for their side effects; filters receive the current
    value as first argument and return the next one.

    Example:
        >>> hooks = HookRegistry()
        >>> hooks.add_filter("title", lambda title: title.upper())
        >>> hooks.apply_filters("title", "hello")
        'HELLO'
    """

    def __init__(self) -> None:
        self._hooks: Dict[str, List[_Entry]] = {}
        self._sequence = count()

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add(hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add(hook_name, callback, priority)

    def do_action(self, hook_name: str, *args: Any) -> None:
        for callback in self.callbacks(hook_name):
            callback(*args)

    def apply_filters(self, hook_name: str, value: Any, *args: Any) -> Any:
        for callback in self.callbacks(hook_name):
            value = callback(value, *args)
        return value

    def has(self, hook_name: str) -> bool:
        return bool(self._hooks.get(hook_name))

    def callbacks(self, hook_name: str) -> List[Callable[..., Any]]:
        """Callbacks of ``hook_name`` in execution order."""
        return [callback for _, _, callback in sorted(self._hooks.get(hook_name, []), key=lambda e: (e[0], e[1]))]

    def clear(self) -> None:
        self._hooks.clear()

    def _add(self, hook_name: str, callback: Callable[..., Any], priority: int) -> None:
        self._hooks.setdefault(hook_name, []).append((priority, next(self._sequence), callback))

import re
from typing import Iterable, List

from modulepress.domain import ExactRule, MiddlewareRule, RegexRule, WildcardRule

_PLACEHOLDER_SEGMENT = re.compile(r"^:[a-zA-Z0-9_]+$")


class MiddlewareParser:
    """Decides whether a middleware rule applies to the active route.

    A route is described by two candidate paths, both relative to the REST
    namespace and without surrounding slashes: the declared path
    (``users/:id``) and the concrete request path (``users/42``).
    """

    @staticmethod
    def is_middleware_applicable(rule: MiddlewareRule, candidate_paths: Iterable[str], method: str) -> bool:
        """Whether ``rule`` matches one of ``candidate_paths`` for ``method``.

        Example:
            >>> rule = ExactRule(path="/users/:id", methods=["GET"])
            >>> MiddlewareParser.is_middleware_applicable(rule, ["users/:id", "users/42"], "GET")
            True
        """
        paths = [MiddlewareParser.normalize_path(path) for path in candidate_paths]
        return MiddlewareParser.path_match(rule, paths) and MiddlewareParser.method_match(rule.methods, method)

    @staticmethod
    def path_match(rule: MiddlewareRule, paths: List[str]) -> bool:
        if isinstance(rule, WildcardRule):
            return True
        if isinstance(rule, RegexRule):
            return any(rule.pattern.search(path) for path in paths)
        if isinstance(rule, ExactRule):
            expected = MiddlewareParser.normalize_path(rule.path)
            return any(MiddlewareParser._segments_match(expected, path) for path in paths)
        return False

    @staticmethod
    def method_match(methods: Iterable[str], method: str) -> bool:
        active = str(method).upper()
        return any(allowed == "*" or str(allowed).upper() == active for allowed in methods)

    @staticmethod
    def normalize_path(path: str) -> str:
        return "/".join(segment for segment in path.split("/") if segment)

    @staticmethod
    def _segments_match(expected: str, actual: str) -> bool:
        if expected == actual:
            return True
        expected_segments = expected.split("/")
        actual_segments = actual.split("/")
        if len(expected_segments) != len(actual_segments):
            return False
        for expected_segment, actual_segment in zip(expected_segments, actual_segments):
            # A placeholder in the rule stands for any single concrete segment.
            if _PLACEHOLDER_SEGMENT.match(expected_segment) and not actual_segment.startswith(":"):
                continue
            if expected_segment != actual_segment:
                return False
        return True

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, select_autoescape

from modulepress.domain import BaseFrameworkException, IRenderer

logger = logging.getLogger(__name__)

_EXCEPTION_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{{ status_code }} {{ title }}</title></head>
<body>
<h1>{{ status_code }}</h1>
<p>{{ message }}</p>
{% if errors %}<ul>{% for field, error in errors.items() %}<li><strong>{{ field }}</strong>: {{ error }}</li>{% endfor %}</ul>{% endif %}
</body>
</html>
"""


class Jinja2Renderer(IRenderer):
    """Renders dotted view names (``users.show``) from ``users/show.html`` templates.

    View composers registered for a view contribute extra context every time
    it renders; view directives are exposed to every template as globals.

    Attributes:
        env: The Jinja2 environment.

    Example:
        >>> renderer = Jinja2Renderer(Path("views"))
        >>> renderer.add_view_directive("money", lambda cents: f"${cents / 100:.2f}")
        >>> renderer.render("orders.show", {"total": 1250})
    """

    def __init__(self, views_path: Optional[Union[str, Path]] = None, templates: Optional[Dict[str, str]] = None) -> None:
        """
        Args:
            views_path: Directory templates are loaded from.
            templates: In-memory templates keyed by file name, looked up first.
        """
        self._templates = DictLoader(dict(templates or {}))
        loaders: List[Any] = [self._templates]
        if views_path is not None:
            loaders.append(FileSystemLoader(str(views_path)))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(enabled_extensions=["html", "htm", "xml"], default_for_string=True),
        )
        self._composers: Dict[str, List[Callable[[str, Dict[str, Any]], Any]]] = {}

    def render(self, view: str, data: Any = None) -> str:
        context = dict(data) if isinstance(data, Mapping) else {"data": data}
        for composer in self._composers.get(view, []):
            extra = composer(view, context)
            if isinstance(extra, Mapping):
                context.update(extra)
        return self.env.get_template(self.template_name(view)).render(context)

    def render_exception(self, exception: BaseFrameworkException, debug: bool = False) -> str:
        message = exception.message
        if debug and exception.reason:
            message = f"{message} - Reason: {exception.reason}"
        return self.env.from_string(_EXCEPTION_PAGE).render(
            status_code=exception.status_code,
            title=exception.default_message,
            message=message,
            errors=exception.errors,
        )

    def add_view_composer(self, view: str, composer: Callable[[str, Dict[str, Any]], Any]) -> None:
        self._composers.setdefault(view, []).append(composer)
        logger.debug("View composer added for '%s'", view)

    def add_view_directive(self, name: str, directive: Callable[..., Any]) -> None:
        self.env.globals[name] = directive
        logger.debug("View directive '%s' added", name)

    def add_template(self, name: str, source: str) -> None:
        """Register an in-memory template under a file name such as ``users/show.html``."""
        self._templates.mapping[name] = source

    @staticmethod
    def template_name(view: str) -> str:
        if view.endswith(".html"):
            return view
        return view.replace(".", "/") + ".html"

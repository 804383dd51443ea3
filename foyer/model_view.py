"""
ModelView result type: a view identifier plus the data handed to the view.
"""

from typing import Any, Dict, Optional

REDIRECT_PREFIX = "redirect:"


class ModelView:
    """
    Handler result asking the front controller to render a view.

    Every model entry becomes a request attribute before the view is
    rendered. A view prefixed with ``redirect:`` sends an HTTP redirect
    instead of rendering.

    Example:
        >>> mv = ModelView("items.html").add_object("items", [1, 2])
        >>> mv.model
        {'items': [1, 2]}
    """

    def __init__(self, view: Optional[str] = None, model: Optional[Dict[str, Any]] = None):
        self.view = view
        self.model: Dict[str, Any] = dict(model or {})

    @classmethod
    def redirect(cls, target: str) -> "ModelView":
        return cls(REDIRECT_PREFIX + target)

    def add_object(self, key: str, value: Any) -> "ModelView":
        """Add a model entry (supports method chaining)."""
        self.model[key] = value
        return self

    @property
    def is_redirect(self) -> bool:
        return self.view is not None and self.view.startswith(REDIRECT_PREFIX)

    @property
    def redirect_target(self) -> str:
        """Redirect path with a leading slash, e.g. 'redirect:home' -> '/home'."""
        target = self.view[len(REDIRECT_PREFIX):] if self.is_redirect else ""
        return target if target.startswith("/") else "/" + target

    def __repr__(self) -> str:
        return f"<ModelView view={self.view!r} model_keys={sorted(self.model)}>"

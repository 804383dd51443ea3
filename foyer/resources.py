"""
Collaborators reached at the end of the dispatch chain.

StaticResources serves files when no route matches a request; ViewRenderer
renders the view named by a ModelView result. Both are protocols so that an
application can plug in its own implementation. The defaults work on plain
directories.
"""

import logging
import mimetypes
from pathlib import Path
from string import Template
from typing import Optional, Protocol

from .request import Request
from .response import Response, TEXT_HTML
from .status import HTTPStatus

logger = logging.getLogger(__name__)


class StaticResources(Protocol):
    """Static-file collaborator probed after every routing miss."""

    def exists(self, path: str) -> bool:
        """True if a resource is available at ``path``."""
        ...

    async def serve(self, path: str, request: Request, response: Response) -> None:
        """Write the resource at ``path`` into ``response``."""
        ...


class ViewRenderer(Protocol):
    """View collaborator receiving forwards from ModelView results."""

    async def render(self, view: str, request: Request, response: Response) -> bool:
        """
        Render ``view`` into ``response`` using the request attributes.

        Returns:
            False if no such view exists, True once rendered.
        """
        ...


def _resolve_inside(root: Path, relative: str) -> Optional[Path]:
    """
    Resolve a URL path under ``root``. Returns None when the result escapes
    the root directory (e.g. '/../../etc/passwd').
    """
    full_path = (root / relative.lstrip("/")).resolve()
    try:
        full_path.relative_to(root)
    except ValueError:
        logger.warning("Path traversal attempt: %s", relative)
        return None
    return full_path


class DirectoryStaticResources:
    """
    Serves files from a directory.

    Example:
        static = DirectoryStaticResources("public")
        static.exists("/css/site.css")  # public/css/site.css
    """

    def __init__(self, root_dir: str, index_file: str = "index.html"):
        self.root_dir = Path(root_dir).resolve()
        self.index_file = index_file

        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

    def _locate(self, path: str) -> Optional[Path]:
        full_path = _resolve_inside(self.root_dir, path)
        if full_path is None:
            return None
        if full_path.is_dir():
            full_path = full_path / self.index_file
        return full_path if full_path.is_file() else None

    def exists(self, path: str) -> bool:
        return self._locate(path) is not None

    async def serve(self, path: str, request: Request, response: Response) -> None:
        full_path = self._locate(path)
        if full_path is None:
            response.send_error(HTTPStatus.HTTP_404_NOT_FOUND, f"File not found: {path}")
            return

        content_type, _ = mimetypes.guess_type(full_path.name)
        response.set_status(HTTPStatus.HTTP_200_OK)
        response.content_type = content_type or "application/octet-stream"
        response.write(full_path.read_bytes())


class TemplateViewRenderer:
    """
    Renders ``string.Template`` files from a directory.

    ``$name`` placeholders are replaced by request attributes; unknown
    placeholders are left untouched.

    Example:
        # views/item.html: <h1>$title</h1>
        ModelView("item.html").add_object("title", "Lamp")  ->  <h1>Lamp</h1>
    """

    def __init__(self, views_dir: str, encoding: str = "utf-8"):
        self.views_dir = Path(views_dir).resolve()
        self.encoding = encoding

        if not self.views_dir.is_dir():
            raise ValueError(f"Views directory does not exist: {views_dir}")

    async def render(self, view: str, request: Request, response: Response) -> bool:
        template_path = _resolve_inside(self.views_dir, view)
        if template_path is None or not template_path.is_file():
            return False

        template = Template(template_path.read_text(encoding=self.encoding))
        content = template.safe_substitute(
            {key: str(value) for key, value in request.attributes.items()}
        )

        content_type, _ = mimetypes.guess_type(template_path.name)
        if content_type is None or content_type == "text/html":
            content_type = TEXT_HTML
        response.content_type = content_type
        response.write(content)
        return True

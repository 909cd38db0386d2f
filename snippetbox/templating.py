"""
Snippetbox - Template Renderer
===============================

What:  Renders HTML pages from Jinja2 templates.
Why:   Pages are parsed once at startup into a cache keyed by page name, so a
       missing or broken template fails at boot instead of mid-request.
How:   Every file in `pages/` extends `base.html` and may include
       `partials/`. `render()` produces the whole body as a string before a
       response object exists, so a rendering error can still become a
       clean 500 instead of a half-written page.

Template data:
    TemplateData carries the values every page can use (current year,
    flash message, auth flag, CSRF token) plus the page-specific ones.
"""

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape
from starlette.responses import HTMLResponse

from snippetbox.exceptions import TemplateNotFoundError

logger = logging.getLogger(__name__)


def human_date(value: Optional[datetime]) -> str:
    """Format a timestamp as '02 Jan 2006 at 15:04' in UTC ('' for None)."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%d %b %Y at %H:%M")


@dataclass
class TemplateData:
    current_year: int = field(default_factory=lambda: datetime.now(timezone.utc).year)
    flash: str = ""
    is_authenticated: bool = False
    csrf_token: str = ""
    snippet: Any = None
    snippets: List[Any] = field(default_factory=list)
    form: Any = None
    user: Any = None


class TemplateRenderer:
    """Page cache plus rendering into HTML responses."""

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.env = Environment(
            loader=FileSystemLoader(str(self.directory)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["human_date"] = human_date
        self.cache: Dict[str, Template] = self._build_cache()

    def _build_cache(self) -> Dict[str, Template]:
        cache: Dict[str, Template] = {}
        for page in sorted((self.directory / "pages").glob("*.html")):
            cache[page.name] = self.env.get_template(f"pages/{page.name}")
        logger.info("Template cache built: %d pages", len(cache))
        return cache

    def render(self, page: str, status: int, data: TemplateData) -> HTMLResponse:
        """
        Render `page` with `data` into a response with `status`.

        Raises:
            TemplateNotFoundError: `page` is not in the cache.
            jinja2.TemplateError: the template failed while rendering.
        """
        template = self.cache.get(page)
        if template is None:
            raise TemplateNotFoundError(page)

        # Shallow on purpose: rows and forms are passed as-is
        body = template.render(**{f.name: getattr(data, f.name) for f in fields(data)})
        return HTMLResponse(body, status_code=int(status))

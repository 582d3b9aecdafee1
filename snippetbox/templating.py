"""
Snippetbox — Page Rendering
============================

What:  Jinja2 environment, template data assembly, and the render() helper.
How:   One Jinja2Templates instance for the whole process. Jinja2 caches
       compiled templates; `load_templates()` compiles every template once at
       startup so a broken template stops the server from starting instead of
       failing on first request.

Template data available on every page:
    current_year       for the footer
    flash              one-time message, popped from the session on render
    is_authenticated   set by the authenticate dependency
    csrf_token         for the hidden input in every form
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from fastapi.templating import Jinja2Templates
from starlette.requests import Request
from starlette.responses import HTMLResponse

from snippetbox.dependencies import pop_flash

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def human_date(value: Optional[datetime]) -> str:
    """
    Format a timestamp as '02 Jan 2006 at 15:04' in UTC.

    Naive datetimes (SQLite returns these) are taken to be UTC already.
    Returns an empty string for None.
    """
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%d %b %Y at %H:%M")


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["human_date"] = human_date


def load_templates() -> int:
    """
    Compile every page template into the environment cache.

    Returns:
        Number of templates loaded

    Raises:
        jinja2.TemplateSyntaxError: A template does not compile
    """
    names = templates.env.list_templates(extensions=["html"])
    for name in names:
        templates.env.get_template(name)
    logger.info("Loaded %d templates from %s", len(names), TEMPLATES_DIR)
    return len(names)


def template_data(request: Request, **data: Any) -> dict:
    """Common data for every page, plus the page-specific `data`."""
    context = {
        "current_year": datetime.now(timezone.utc).year,
        "flash": pop_flash(request),
        "is_authenticated": getattr(request.state, "is_authenticated", False),
        "csrf_token": getattr(request.state, "csrf_token", ""),
    }
    context.update(data)
    return context


def render(request: Request, name: str, status_code: int = 200, **data: Any) -> HTMLResponse:
    """
    Render template `name` with the common template data.

    Jinja2Templates renders eagerly, so a template error raises here and is
    answered as a 500 by RecoverMiddleware, never as a half-written page.
    """
    return templates.TemplateResponse(
        request,
        name,
        template_data(request, **data),
        status_code=status_code,
    )

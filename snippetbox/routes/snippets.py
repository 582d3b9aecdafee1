"""
Snippetbox — Snippet Route Handlers
====================================

What:  View a snippet (public) and create one (logged-in users only).

Routes:
    GET  /snippet/view/{id}   dynamic     404 for bad, unknown or expired IDs
    GET  /snippet/create      protected   empty form, one-week expiry preselected
    POST /snippet/create      protected   422 + field errors, or 303 to the new snippet
"""

import logging
import re

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.dependencies import DYNAMIC, PROTECTED, put_flash
from snippetbox.forms.models import SnippetCreateForm
from snippetbox.responses import not_found
from snippetbox.services.snippet_service import snippet_service
from snippetbox.templating import render

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/snippet", tags=["Snippets"], dependencies=DYNAMIC)
protected_router = APIRouter(prefix="/snippet", tags=["Snippets"], dependencies=PROTECTED)

SNIPPET_ID_RX = re.compile(r"\+?[0-9]+")
# Largest value of the 32-bit integer id column
MAX_SNIPPET_ID = 2**31 - 1


@public_router.get("/view/{snippet_id}", response_class=HTMLResponse)
async def snippet_view(
    snippet_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Show a single snippet.

    The ID is taken as a string and parsed here so that malformed IDs get
    the same plain 404 as unknown ones, not a validation error page. Only
    ASCII digits (optionally after a "+") within the column range count as
    an ID; underscores, spaces and other digit scripts do not.
    NotFoundError from the service is answered 404 by the global handler.
    """
    if SNIPPET_ID_RX.fullmatch(snippet_id) is None:
        return not_found()
    digits = snippet_id.lstrip("+").lstrip("0")
    if len(digits) > len(str(MAX_SNIPPET_ID)):
        return not_found()
    parsed_id = int(digits or "0")
    if parsed_id < 1 or parsed_id > MAX_SNIPPET_ID:
        return not_found()

    snippet = await snippet_service.get(db, parsed_id)
    return render(request, "view.html", snippet=snippet)


@protected_router.get("/create", response_class=HTMLResponse)
async def snippet_create(request: Request) -> HTMLResponse:
    return render(request, "create.html", form=SnippetCreateForm(expires=7))


@protected_router.post("/create")
async def snippet_create_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    form = SnippetCreateForm.from_form(await request.form())

    if not form.validate_fields():
        return render(request, "create.html", status_code=422, form=form)

    snippet_id = await snippet_service.insert(db, form.title, form.content, form.expires)

    put_flash(request, "Snippet successfully created!")
    return RedirectResponse(f"/snippet/view/{snippet_id}", status_code=303)

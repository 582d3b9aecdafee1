"""
Snippetbox — Home and About Pages
==================================

What:  GET / (latest snippets) and GET /about.
Chain: dynamic (CSRF token available, authentication looked up).
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.dependencies import DYNAMIC
from snippetbox.services.snippet_service import snippet_service
from snippetbox.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"], dependencies=DYNAMIC)


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> HTMLResponse:
    snippets = await snippet_service.latest(db)
    return render(request, "home.html", snippets=snippets)


@router.get("/about", response_class=HTMLResponse)
async def about(request: Request) -> HTMLResponse:
    return render(request, "about.html")

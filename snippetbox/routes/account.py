"""
Snippetbox — Account Route Handlers
====================================

Routes (all protected):
    GET  /account/view               name, email and join date
    GET  /account/password/update    change-password form
    POST /account/password/update    422 + field errors, or flash and 303 to /account/view
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.dependencies import PROTECTED, authenticated_user_id, put_flash
from snippetbox.exceptions import InvalidCredentialsError, NotFoundError
from snippetbox.forms.models import PasswordUpdateForm
from snippetbox.services.user_service import user_service
from snippetbox.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["Account"], dependencies=PROTECTED)


@router.get("/view", response_class=HTMLResponse)
async def account_view(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    try:
        user = await user_service.get(db, authenticated_user_id(request))
    except NotFoundError:
        return RedirectResponse("/user/login", status_code=303)

    return render(request, "account.html", user=user)


@router.get("/password/update", response_class=HTMLResponse)
async def password_update(request: Request) -> HTMLResponse:
    return render(request, "password.html", form=PasswordUpdateForm())


@router.post("/password/update")
async def password_update_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Change the logged-in user's password.

    The stored password is only touched once the form itself is valid; a
    wrong current password is then reported against that field.
    """
    form = PasswordUpdateForm.from_form(await request.form())

    if form.validate_fields():
        try:
            await user_service.update_password(
                db,
                authenticated_user_id(request),
                form.current_password,
                form.new_password,
            )
        except InvalidCredentialsError:
            form.add_field_error("current_password", "Current password is incorrect")
        except NotFoundError:
            return RedirectResponse("/user/login", status_code=303)

    if not form.valid:
        return render(request, "password.html", status_code=422, form=form)

    put_flash(request, "Your password has been updated!")
    return RedirectResponse("/account/view", status_code=303)

"""
Snippetbox — Signup, Login and Logout
======================================

Routes:
    GET  /user/signup    dynamic     signup form
    POST /user/signup    dynamic     422 + field errors, or flash and 303 to /user/login
    GET  /user/login     dynamic     login form
    POST /user/login     dynamic     422 + errors, or 303 to the remembered page
    POST /user/logout    protected   flash and 303 to /

Login flow:
    1. Validate the form (422 on blank fields or a malformed email)
    2. Check credentials (422 with a form-level error when they don't match;
       the message does not reveal which of email or password was wrong)
    3. Renew the session, then store the user ID
    4. Redirect to the page that bounced the user to login, consumed once,
       or to /snippet/create
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.database import get_db_session
from snippetbox.dependencies import (
    AUTH_USER_KEY,
    DYNAMIC,
    PROTECTED,
    REDIRECT_AFTER_LOGIN_KEY,
    put_flash,
    renew_session,
)
from snippetbox.exceptions import DuplicateEmailError, InvalidCredentialsError
from snippetbox.forms.models import UserLoginForm, UserSignupForm
from snippetbox.services.user_service import user_service
from snippetbox.templating import render

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/user", tags=["Users"], dependencies=DYNAMIC)
protected_router = APIRouter(prefix="/user", tags=["Users"], dependencies=PROTECTED)

DEFAULT_AFTER_LOGIN = "/snippet/create"


@public_router.get("/signup", response_class=HTMLResponse)
async def user_signup(request: Request) -> HTMLResponse:
    return render(request, "signup.html", form=UserSignupForm())


@public_router.post("/signup")
async def user_signup_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    form = UserSignupForm.from_form(await request.form())

    if not form.validate_fields():
        return render(request, "signup.html", status_code=422, form=form)

    try:
        await user_service.insert(db, form.name, form.email, form.password)
    except DuplicateEmailError:
        form.add_field_error("email", "Email address is already in use")
        return render(request, "signup.html", status_code=422, form=form)

    put_flash(request, "Your signup was successful. Please log in.")
    return RedirectResponse("/user/login", status_code=303)


@public_router.get("/login", response_class=HTMLResponse)
async def user_login(request: Request) -> HTMLResponse:
    return render(request, "login.html", form=UserLoginForm())


@public_router.post("/login")
async def user_login_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    form = UserLoginForm.from_form(await request.form())

    if not form.validate_fields():
        return render(request, "login.html", status_code=422, form=form)

    try:
        user_id = await user_service.authenticate(db, form.email, form.password)
    except InvalidCredentialsError:
        form.add_non_field_error("Email or password is incorrect")
        return render(request, "login.html", status_code=422, form=form)

    renew_session(request)
    request.session[AUTH_USER_KEY] = user_id
    logger.info("User %d logged in", user_id)

    target = request.session.pop(REDIRECT_AFTER_LOGIN_KEY, "") or DEFAULT_AFTER_LOGIN
    # Only ever redirect within this site
    if not target.startswith("/") or target.startswith("//"):
        target = DEFAULT_AFTER_LOGIN
    return RedirectResponse(target, status_code=303)


@protected_router.post("/logout")
async def user_logout(request: Request) -> Response:
    user_id = request.session.get(AUTH_USER_KEY)

    renew_session(request)
    request.session.pop(AUTH_USER_KEY, None)
    logger.info("User %s logged out", user_id)

    put_flash(request, "You've been logged out successfully!")
    return RedirectResponse("/", status_code=303)

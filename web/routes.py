"""
web/routes.py -- Jinja2 template routes for the admin panel web UI.

These routes serve server-rendered HTML. They share app.state.user_store with
the API routes and call the same auth/accounts.py operations, but answer with
pages and redirects instead of JSON.

Page-level authorization uses the AuthResult from auth/gate.py:
  anonymous             -> 302 /login
  authenticated, !ADMIN -> 302 /

Routes:
  GET  /login                          -- login form
  POST /login                          -- handle password login
  POST /logout                         -- clear cookie, redirect /login
  GET  /                               -- welcome page (auth required)
  GET  /dashboard                      -- redirect to /dashboard/users
  GET  /dashboard/users                -- user management table (admin)
  POST /dashboard/users                -- create user (admin)
  GET  /dashboard/users/{id}/edit      -- edit form (admin)
  POST /dashboard/users/{id}/edit      -- apply edit (admin)
  POST /dashboard/users/{id}/delete    -- delete user (admin)
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError

from auth.accounts import (
    AccountError,
    AccountNotFound,
    create_account,
    delete_account,
    list_accounts,
    parse_user_id,
    update_account,
)
from auth.cookies import clear_session_cookie, read_session_cookie, write_session_cookie
from auth.gate import HOME_PATH, LOGIN_PATH, check_authenticated, check_role, get_session_user, redirect_for
from auth.models import Role, SessionUser
from auth.passwords import authenticate_user
from auth.sessions import issue_session_token, revoke_session_token
from auth.store import UserStore

logger = logging.getLogger("adminpanel.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

_USERS_PATH = "/dashboard/users"

# Whitelist mapping for ?error= on /login. The raw query param is never
# passed to templates -- only the message from this dict is.
_ERROR_MESSAGES: dict[str, str] = {
    "missing_fields": "Email and password are required",
    "bad_credentials": "Invalid email or password",
    "server_error": "An error occurred during login",
}

# Generic messages for store failures on the user management pages.
_STORE_ERRORS: dict[str, str] = {
    "list": "An error occurred while fetching users",
    "create": "An error occurred while creating user",
    "update": "An error occurred while updating user",
    "delete": "An error occurred while deleting user",
}


def _role_label(role: Role) -> str:
    return "Administrator" if role is Role.ADMIN else "User"


templates.env.globals["role_label"] = _role_label


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    """Render the login page. Already-authenticated visitors go straight to /."""
    if get_session_user(request) is not None:
        return RedirectResponse(HOME_PATH, status_code=302)

    error_msg = _ERROR_MESSAGES.get(request.query_params.get("error", ""))
    return templates.TemplateResponse(request, "login.html", {"error_msg": error_msg})


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
) -> RedirectResponse:
    """Handle the login form. Success sets the session cookie and goes to /."""
    if not email or not password:
        return RedirectResponse(f"{LOGIN_PATH}?error=missing_fields", status_code=302)

    user_store: UserStore = request.app.state.user_store
    try:
        user = authenticate_user(user_store, email, password)
    except SQLAlchemyError:
        logger.exception("Login lookup failed")
        return RedirectResponse(f"{LOGIN_PATH}?error=server_error", status_code=302)
    if user is None:
        return RedirectResponse(f"{LOGIN_PATH}?error=bad_credentials", status_code=302)

    resp = RedirectResponse(HOME_PATH, status_code=302)
    write_session_cookie(resp, issue_session_token(user.id))
    resp.headers["Cache-Control"] = "no-store"
    logger.info("User %d logged in", user.id)
    return resp


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """Clear the session cookie and redirect to the login page."""
    revoke_session_token(read_session_cookie(request))
    resp = RedirectResponse(LOGIN_PATH, status_code=302)
    clear_session_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Home
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    result = check_authenticated(request)
    if redirect := redirect_for(result):
        return redirect
    return templates.TemplateResponse(request, "home.html", {"user": result.user})


@router.get("/dashboard")
def dashboard(request: Request) -> RedirectResponse:
    return RedirectResponse(_USERS_PATH, status_code=302)


# ---------------------------------------------------------------------------
# User management (admin only)
# ---------------------------------------------------------------------------


def _users_page(
    request: Request,
    current_user: SessionUser,
    error_msg: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    user_store: UserStore = request.app.state.user_store
    try:
        users = list_accounts(user_store)
    except SQLAlchemyError:
        logger.exception("Listing users failed")
        users = []
        error_msg = error_msg or _STORE_ERRORS["list"]
        status_code = 500
    return templates.TemplateResponse(
        request,
        "users.html",
        {
            "current_user": current_user,
            "users": users,
            "error_msg": error_msg,
        },
        status_code=status_code,
    )


def _store_failure(request: Request, current_user: SessionUser, action: str) -> HTMLResponse:
    logger.exception("User %s failed", action)
    return _users_page(request, current_user, error_msg=_STORE_ERRORS[action], status_code=500)


@router.get(_USERS_PATH, response_class=HTMLResponse)
def users_dashboard(request: Request) -> HTMLResponse:
    result = check_role(request, Role.ADMIN)
    if redirect := redirect_for(result):
        return redirect
    return _users_page(request, result.user)


@router.post(_USERS_PATH, response_class=HTMLResponse)
def users_create(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    name: str = Form(default=""),
    role: str = Form(default=Role.USER.value),
) -> HTMLResponse:
    result = check_role(request, Role.ADMIN)
    if redirect := redirect_for(result):
        return redirect
    try:
        created = create_account(request.app.state.user_store, email, password, name=name, role=role)
    except AccountError as exc:
        return _users_page(request, result.user, error_msg=exc.message, status_code=exc.status_code)
    except SQLAlchemyError:
        return _store_failure(request, result.user, "create")
    logger.info("Created user %d (%s)", created.id, created.role.value)
    return RedirectResponse(_USERS_PATH, status_code=303)


@router.get(_USERS_PATH + "/{user_id}/edit", response_class=HTMLResponse)
def users_edit_form(request: Request, user_id: str) -> HTMLResponse:
    result = check_role(request, Role.ADMIN)
    if redirect := redirect_for(result):
        return redirect
    user_store: UserStore = request.app.state.user_store
    try:
        target = user_store.get_by_id(parse_user_id(user_id))
        if target is None:
            raise AccountNotFound("User not found")
    except AccountError as exc:
        return _users_page(request, result.user, error_msg=exc.message, status_code=exc.status_code)
    except SQLAlchemyError:
        return _store_failure(request, result.user, "list")
    return templates.TemplateResponse(
        request,
        "user_edit.html",
        {"current_user": result.user, "target": target, "error_msg": None},
    )


@router.post(_USERS_PATH + "/{user_id}/edit", response_class=HTMLResponse)
def users_edit(
    request: Request,
    user_id: str,
    name: str = Form(default=""),
    password: str = Form(default=""),
    role: str = Form(default=Role.USER.value),
) -> HTMLResponse:
    """Apply the edit form. An empty password field leaves the password unchanged."""
    result = check_role(request, Role.ADMIN)
    if redirect := redirect_for(result):
        return redirect
    user_store: UserStore = request.app.state.user_store
    try:
        uid = parse_user_id(user_id)
    except AccountError as exc:
        return _users_page(request, result.user, error_msg=exc.message, status_code=exc.status_code)

    changes = {"name": name, "password": password, "role": role}
    try:
        update_account(user_store, uid, changes)
    except AccountNotFound as exc:
        return _users_page(request, result.user, error_msg=exc.message, status_code=exc.status_code)
    except AccountError as exc:
        # Validation failure on an existing user: show the form again.
        try:
            target = user_store.get_by_id(uid)
        except SQLAlchemyError:
            return _store_failure(request, result.user, "update")
        return templates.TemplateResponse(
            request,
            "user_edit.html",
            {"current_user": result.user, "target": target, "error_msg": exc.message},
            status_code=exc.status_code,
        )
    except SQLAlchemyError:
        return _store_failure(request, result.user, "update")
    return RedirectResponse(_USERS_PATH, status_code=303)


@router.post(_USERS_PATH + "/{user_id}/delete", response_class=HTMLResponse)
def users_delete(request: Request, user_id: str) -> HTMLResponse:
    result = check_role(request, Role.ADMIN)
    if redirect := redirect_for(result):
        return redirect
    try:
        delete_account(request.app.state.user_store, user_id)
    except AccountError as exc:
        return _users_page(request, result.user, error_msg=exc.message, status_code=exc.status_code)
    except SQLAlchemyError:
        return _store_failure(request, result.user, "delete")
    logger.info("Deleted user %s", user_id)
    return RedirectResponse(_USERS_PATH, status_code=303)

"""
auth/gate.py -- Identity resolution and role checks for every request.

A request is in one of two states: anonymous, or identified by a
SessionUser. get_session_user() resolves which:

  1. read the session cookie                 -- absent      -> anonymous
  2. validate the token                      -- invalid     -> anonymous
  3. load the public user row by id          -- row missing -> anonymous
                                             -- store error -> anonymous (logged)

Authorization checks return an AuthResult instead of raising, so each caller
decides how to render a failure:

  page routes  -> redirect_for(result): UNAUTHENTICATED -> /login,
                  FORBIDDEN -> /   (deliberately different targets)
  API routes   -> get_current_user / require_admin dependencies, which raise
                  HTTP 401 / 403 with a JSON error body

Layer rule: no imports from web/. This module may import fastapi because the
dependencies below are part of FastAPI's injection system.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.cookies import read_session_cookie
from auth.models import Role, SessionUser
from auth.sessions import validate_session_token

logger = logging.getLogger("adminpanel.auth")

LOGIN_PATH = "/login"
HOME_PATH = "/"


class AuthStatus(str, Enum):
    AUTHORIZED = "authorized"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AuthResult:
    status: AuthStatus
    user: SessionUser | None = None

    @property
    def ok(self) -> bool:
        return self.status is AuthStatus.AUTHORIZED


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------


def get_session_user(request: Request) -> SessionUser | None:
    """Return the identity behind the request's session cookie, or None.

    Never raises. A store failure is logged and treated as anonymous rather
    than surfaced, so a flaky database fails closed.
    """
    user_id = validate_session_token(read_session_cookie(request))
    if user_id is None:
        return None
    user_store = request.app.state.user_store
    try:
        return user_store.get_session_user(user_id)
    except SQLAlchemyError:
        logger.warning("User lookup failed while resolving session for user %d", user_id, exc_info=True)
        return None


def check_authenticated(request: Request) -> AuthResult:
    user = get_session_user(request)
    if user is None:
        return AuthResult(AuthStatus.UNAUTHENTICATED)
    return AuthResult(AuthStatus.AUTHORIZED, user)


def check_role(request: Request, role: Role = Role.ADMIN) -> AuthResult:
    """Authenticate first, then require role. ADMIN is the only gated role."""
    result = check_authenticated(request)
    if not result.ok:
        return result
    if result.user.role is not role and result.user.role is not Role.ADMIN:
        return AuthResult(AuthStatus.FORBIDDEN, result.user)
    return result


def redirect_for(result: AuthResult) -> RedirectResponse | None:
    """Map a failed AuthResult to the page redirect. Returns None when authorized.

    Call at the top of protected page handlers:
        result = check_role(request, Role.ADMIN)
        if redirect := redirect_for(result):
            return redirect
    """
    if result.status is AuthStatus.UNAUTHENTICATED:
        return RedirectResponse(LOGIN_PATH, status_code=302)
    if result.status is AuthStatus.FORBIDDEN:
        return RedirectResponse(HOME_PATH, status_code=302)
    return None


# ---------------------------------------------------------------------------
# FastAPI dependencies (API routes)
# ---------------------------------------------------------------------------


def try_get_current_user(request: Request) -> SessionUser | None:
    """Soft variant for API routes that serve anonymous callers too."""
    return get_session_user(request)


def get_current_user(request: Request) -> SessionUser:
    """Require authentication. Raises HTTP 401 if the request is anonymous.

        @router.get("/protected")
        def route(user: SessionUser = Depends(get_current_user)): ...
    """
    result = check_authenticated(request)
    if not result.ok:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required"},
        )
    return result.user


def require_admin(request: Request) -> SessionUser:
    """Require the ADMIN role. Raises HTTP 401 if anonymous, HTTP 403 if not admin."""
    result = check_role(request, Role.ADMIN)
    if result.status is AuthStatus.UNAUTHENTICATED:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required"},
        )
    if result.status is AuthStatus.FORBIDDEN:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required"},
        )
    return result.user

"""
api/routes/auth.py -- Session endpoints for JSON clients.

Routes:
  POST /api/auth/login   -- email/password login; sets the session cookie
  POST /api/auth/logout  -- clears the session cookie
  GET  /api/auth/me      -- current identity, or null when anonymous

Security:
  authenticate_user() equalizes timing between unknown email and wrong
  password; use it, never get_by_email() + verify_password() inline.
  Both failures return the same message.
  Login responses carry Cache-Control: no-store.

The handlers are plain `def` so FastAPI runs them in its threadpool and
bcrypt does not block the event loop.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import ErrorResponse, LoginRequest, SessionUserResponse, SuccessResponse
from auth.cookies import clear_session_cookie, read_session_cookie, write_session_cookie
from auth.gate import try_get_current_user
from auth.passwords import authenticate_user
from auth.sessions import issue_session_token, revoke_session_token
from auth.store import UserStore

logger = logging.getLogger("adminpanel.api")

# Auth policy:
# - POST /api/auth/login:  public -- the login endpoint must be unauthenticated
# - POST /api/auth/logout: public -- clearing a cookie needs no prior auth
# - GET  /api/auth/me:     public -- anonymous callers get null, not 401
router = APIRouter()


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, code=code).model_dump(exclude_none=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/login", response_model=SessionUserResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    if not body.email or not body.password:
        return _error(400, "invalid_input", "Email and password are required")

    user_store: UserStore = request.app.state.user_store
    try:
        user = authenticate_user(user_store, body.email, body.password)
    except SQLAlchemyError:
        logger.exception("Login lookup failed")
        return _error(500, "internal_error", "An error occurred during login")

    if user is None:
        return _error(401, "bad_credentials", "Invalid email or password")

    resp = JSONResponse(
        status_code=200,
        content=SessionUserResponse.from_user(user).model_dump(mode="json"),
    )
    write_session_cookie(resp, issue_session_token(user.id))
    resp.headers["Cache-Control"] = "no-store"
    logger.info("User %d logged in", user.id)
    return resp


@router.post("/auth/logout", response_model=SuccessResponse)
def logout(request: Request) -> JSONResponse:
    """Clear the session cookie and end the session."""
    revoke_session_token(read_session_cookie(request))
    resp = JSONResponse(content=SuccessResponse().model_dump())
    clear_session_cookie(resp)
    return resp


@router.get("/auth/me", response_model=Optional[SessionUserResponse])
def me(request: Request) -> Optional[SessionUserResponse]:
    """Return the public identity for the session, or null if anonymous."""
    user = try_get_current_user(request)
    if user is None:
        return None
    return SessionUserResponse.from_user(user)

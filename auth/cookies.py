"""
auth/cookies.py -- Moves session tokens between HTTP cookies and the app.

Cookie attributes:
  name      "session"
  httponly  JS cannot read the cookie.
  samesite  "lax" -- sent on top-level navigations, not on cross-site POST.
  secure    only in production (Settings.secure_cookies), so local HTTP
            development still works.
  max_age   Settings.session_max_age (7 days), matching the token's exp.

write_session_cookie() has no rollback: if setting the header fails the
exception propagates to the caller.
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from core.config import get_settings

SESSION_COOKIE = "session"


def write_session_cookie(response: Response, token: str) -> None:
    """Attach the session token to the response as the session cookie."""
    settings = get_settings()
    response.set_cookie(
        SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.session_max_age,
        path="/",
    )


def read_session_cookie(request: Request) -> str | None:
    """Return the raw session cookie value, or None if absent or empty."""
    return request.cookies.get(SESSION_COOKIE) or None


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie on the client (logout)."""
    settings = get_settings()
    response.delete_cookie(
        SESSION_COOKIE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )

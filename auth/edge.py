"""
auth/edge.py -- Coarse pre-routing access check.

Runs before any route logic and looks only at the request path and whether
a session cookie is present. It never validates the token and never touches
the database; get_session_user() in auth/gate.py is the authority.

  /login and anything under /api/  -> pass (API handlers run their own checks)
  /static/* and /favicon.ico       -> not filtered at all
  everything else, no cookie       -> redirect to /login
  everything else, any cookie      -> pass
"""

from __future__ import annotations

from collections.abc import Mapping

from auth.cookies import SESSION_COOKIE
from auth.gate import LOGIN_PATH

API_PREFIX = "/api/"
_EXCLUDED_PREFIXES = ("/static/",)
_EXCLUDED_PATHS = frozenset({"/favicon.ico"})


def is_filtered(path: str) -> bool:
    """Return False for static assets, which the filter never inspects."""
    return path not in _EXCLUDED_PATHS and not path.startswith(_EXCLUDED_PREFIXES)


def is_public(path: str) -> bool:
    return path == LOGIN_PATH or path.startswith(API_PREFIX)


def edge_redirect(path: str, cookies: Mapping[str, str]) -> str | None:
    """Return the redirect location for a request, or None to let it through."""
    if not is_filtered(path) or is_public(path):
        return None
    if not cookies.get(SESSION_COOKIE):
        return LOGIN_PATH
    return None

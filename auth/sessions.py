"""
auth/sessions.py -- Session token issuance and validation.

The token IS the session: there is no server-side session table. A token is
an HS256 JWT (python-jose) signed with SECRET_KEY and carrying

    sub  -- the user id, as a string
    iat  -- issuance time
    exp  -- issuance + session_max_age (7 days by default)

The carrying cookie gets the same max-age, so browser expiry and signature
expiry coincide. A token is never mutated after issuance; a new login
replaces it and logout deletes the cookie.

validate_session_token() never raises. Anything unsigned, tampered, expired
or with a non-integer subject resolves to None -- including the bare
"<user id>" cookie values an unsigned scheme would produce.

Layer rule: no imports from api/ or web/. core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("adminpanel.auth")

_ALGORITHM = "HS256"


def issue_session_token(user_id: int, *, now: datetime | None = None) -> str:
    """Encode a signed session token bound to user_id.

    Args:
        user_id: Primary key of the authenticated user.
        now:     Issuance instant. Defaults to the current UTC time; tests pass
                 a past instant to simulate an elapsed session window.
    """
    settings = get_settings()
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": issued,
        "exp": issued + timedelta(seconds=settings.session_max_age),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def validate_session_token(token: str | None) -> int | None:
    """Return the user id carried by a valid token, or None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    try:
        user_id = int(payload.get("sub", ""))
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None


def revoke_session_token(token: str | None) -> None:
    """No-op: there is no server-side denylist.

    Logout is realized by deleting the cookie. A copied token stays valid
    until its exp claim passes.
    """
    logger.debug("Session revoke requested; cookie deletion is the only effect")

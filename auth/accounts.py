"""
auth/accounts.py -- Admin account operations shared by the API and web UI.

Both front-ends call these functions after require_admin / check_role has
passed. Validation, duplicate detection and not-found handling live here so
the JSON and HTML surfaces report identical messages.

Failures raise AccountError subclasses. Each carries the HTTP status the
caller should use, a machine code, and the user-facing message:

  InvalidInput     400  missing credentials, short password, bad id
  EmailTaken       400  duplicate email
  AccountNotFound  404  id not in the store

Store failures (sqlalchemy errors) are not caught here; they propagate to the
route, which logs them and answers with a generic 500.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 255


class AccountError(Exception):
    status_code = 400
    code = "invalid_request"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInput(AccountError):
    code = "invalid_input"


class EmailTaken(AccountError):
    code = "email_taken"


class AccountNotFound(AccountError):
    status_code = 404
    code = "not_found"


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def coerce_role(value: Any) -> Role:
    """Only the exact string "ADMIN" grants admin; everything else is USER."""
    return Role.ADMIN if value == Role.ADMIN.value else Role.USER


def parse_user_id(raw: Any) -> int:
    try:
        user_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInput("Invalid user ID") from None
    if user_id <= 0:
        raise InvalidInput("Invalid user ID")
    return user_id


def _check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _check_name(name: Any) -> str | None:
    if name is None or name == "":
        return None
    if not isinstance(name, str):
        raise InvalidInput("Name must be a string")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidInput(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return name


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def list_accounts(store: UserStore) -> list[User]:
    return store.list_users()


def create_account(
    store: UserStore,
    email: str | None,
    password: str | None,
    name: str | None = None,
    role: Any = None,
) -> User:
    """Validate, hash and insert a new account. Returns the stored User."""
    if not email or not password:
        raise InvalidInput("Email and password are required")
    _check_password_length(password)

    if store.get_by_email(email) is not None:
        raise EmailTaken("User with this email already exists")

    new_user = User(
        email=email,
        password_hash=hash_password(password),
        name=name or None,
        role=coerce_role(role),
    )
    try:
        user_id = store.create_user(new_user)
    except IntegrityError:
        # Lost a race with a concurrent create of the same email.
        raise EmailTaken("User with this email already exists") from None
    return store.get_by_id(user_id)


def update_account(store: UserStore, user_id: Any, changes: dict[str, Any]) -> User:
    """Apply name / password / role changes to an existing account.

    Only keys present in changes are touched. An empty password means
    "leave unchanged"; an empty name clears it. Existence is checked before
    any field is validated, so an unknown id is always a 404.
    """
    uid = parse_user_id(user_id)
    if store.get_by_id(uid) is None:
        raise AccountNotFound("User not found")

    updates: dict[str, Any] = {}
    if "name" in changes:
        updates["name"] = _check_name(changes["name"])
    if "role" in changes:
        updates["role"] = coerce_role(changes["role"])
    password = changes.get("password")
    if password is not None and not isinstance(password, str):
        raise InvalidInput("Password must be a string")
    if password:
        _check_password_length(password)
        updates["password_hash"] = hash_password(password)

    if updates:
        store.update_user(uid, **updates)
    updated = store.get_by_id(uid)
    if updated is None:
        # Deleted between the existence check and the write.
        raise AccountNotFound("User not found")
    return updated


def delete_account(store: UserStore, user_id: Any) -> None:
    uid = parse_user_id(user_id)
    if not store.delete_user(uid):
        raise AccountNotFound("User not found")

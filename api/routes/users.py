"""
api/routes/users.py -- Admin user-management REST endpoints.

Routes:
  GET    /api/users        -- list users, newest first
  POST   /api/users        -- create user                        (201)
  PATCH  /api/users/{id}   -- change name / password / role
  DELETE /api/users/{id}   -- delete user

Every route requires ADMIN via the router-level require_admin dependency,
which runs before any store access: 401 when anonymous, 403 otherwise.

{id} is taken as a string so a non-numeric id is a 400 "Invalid user ID"
rather than a schema 422. Deleting your own account is allowed.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from api.models import SuccessResponse, UserCreate, UserPatch, UserResponse
from auth.accounts import AccountError, create_account, delete_account, list_accounts, update_account
from auth.gate import require_admin
from auth.store import UserStore

logger = logging.getLogger("adminpanel.api")

# Auth policy:
# - all routes: requires admin (require_admin). Router-level dependency, so
#   individual handlers do not repeat it.
router = APIRouter(dependencies=[Depends(require_admin)])


def _account_error(exc: AccountError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"code": exc.code, "message": exc.message})


def _store_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={"code": "internal_error", "message": f"An error occurred while {action}"},
    )


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    try:
        users = list_accounts(user_store)
    except SQLAlchemyError as exc:
        logger.exception("Listing users failed")
        raise _store_error("fetching users") from exc
    return [UserResponse.from_user(u) for u in users]


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Create an account. The password hash is never part of the response."""
    user_store: UserStore = request.app.state.user_store
    try:
        user = create_account(user_store, body.email, body.password, name=body.name, role=body.role)
    except AccountError as exc:
        raise _account_error(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception("Creating user failed")
        raise _store_error("creating user") from exc
    logger.info("Created user %d (%s)", user.id, user.role.value)
    return UserResponse.from_user(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(request: Request, user_id: str, body: UserPatch) -> UserResponse:
    """Apply only the fields present in the body. Unknown id -> 404 whatever the body says."""
    user_store: UserStore = request.app.state.user_store
    changes = body.model_dump(include=body.model_fields_set)
    try:
        user = update_account(user_store, user_id, changes)
    except AccountError as exc:
        raise _account_error(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception("Updating user %s failed", user_id)
        raise _store_error("updating user") from exc
    return UserResponse.from_user(user)


@router.delete("/users/{user_id}", response_model=SuccessResponse)
def delete_user(request: Request, user_id: str) -> SuccessResponse:
    user_store: UserStore = request.app.state.user_store
    try:
        delete_account(user_store, user_id)
    except AccountError as exc:
        raise _account_error(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception("Deleting user %s failed", user_id)
        raise _store_error("deleting user") from exc
    logger.info("Deleted user %s", user_id)
    return SuccessResponse()

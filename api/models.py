"""
API request and response models for the admin panel REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
separate from the dataclasses in auth/models.py, which own the internal
domain shape; route handlers map between the two.

Request bodies declare every field optional on purpose: a missing email or
password is a 400 with a specific message (handled in auth/accounts.py),
not a generic 422 from schema validation.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Role, SessionUser, User

APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Body for POST /api/auth/login."""

    model_config = ConfigDict(extra="ignore")

    # No length caps: an over-long password must fail as bad credentials.
    email: Optional[str] = None
    password: Optional[str] = None


class UserCreate(BaseModel):
    """Body for POST /api/users. role is coerced: anything but "ADMIN" becomes USER."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    role: Any = None


class UserPatch(BaseModel):
    """Body for PATCH /api/users/{id}.

    Only the fields the client actually sent are applied -- the route reads
    model_fields_set to tell "absent" from "null".

    Every field is untyped so the unknown-id 404 wins over any body problem;
    auth/accounts.py validates types and lengths after the existence check.
    """

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    password: Any = None
    role: Any = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionUserResponse(BaseModel):
    """Public identity returned by login and GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: Optional[str] = None
    role: Role

    @classmethod
    def from_user(cls, user: SessionUser | User) -> "SessionUserResponse":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class UserResponse(BaseModel):
    """One row of the user-management API. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: Optional[str] = None
    role: Role
    created_at: str = Field(serialization_alias="createdAt")
    updated_at: str = Field(serialization_alias="updatedAt")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


class SuccessResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True


class ErrorResponse(BaseModel):
    """Uniform error envelope: error is the user-facing message, code is for machines."""

    model_config = ConfigDict(frozen=True)

    error: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str = APP_VERSION
    components: dict[str, str] = Field(default_factory=dict)

"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only own the shape.

Layer rule: no imports from api/, web/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """A persisted account.

    password_hash is the bcrypt output and never leaves the auth/ package:
    API and page responses are built from the public fields only.
    Email is unique and compared case-sensitively, exactly as stored.
    """

    email: str
    role: Role = Role.USER
    id: int | None = None
    name: str | None = None
    password_hash: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SessionUser:
    """The identity resolved from a session cookie.

    Loaded with a column projection that excludes password_hash, so the hash
    is never read on the per-request identity path.
    """

    id: int
    email: str
    name: str | None
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

"""
auth/passwords.py -- Password hashing, verification and credential checks.

bcrypt is used directly (no passlib wrapper). The cost factor is fixed at
10 rounds; the salt and cost are embedded in the hash string, so
verify_password() needs nothing but the stored value.

authenticate_user() always runs exactly one bcrypt verification, against
_DUMMY_HASH when the email is unknown, so response time does not reveal
whether an account exists.

Minimum password length is enforced by callers (auth/accounts.py), not here:
hash_password("") is valid.

Layer rule: no imports from api/, web/ or core/.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

BCRYPT_ROUNDS = 10

# bcrypt only reads the first 72 bytes. Newer releases raise instead of
# truncating, so both hashing and verification truncate explicitly.
_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    """Return True if the plaintext matches the hash. Never raises.

    A malformed, empty or missing hash is simply a mismatch.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at import so the first unknown-email login is not measurably
# slower than later ones.
_DUMMY_HASH: str = hash_password("adminpanel_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Return the User if email/password match, else None.

    Unknown email and wrong password are indistinguishable to the caller,
    both in return value and in time spent.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user

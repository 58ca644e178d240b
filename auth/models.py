"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these types own the shape.

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Canonical width of a user id everywhere it travels, including the signed
# token payload: a 64-bit signed integer.
USER_ID_MIN = 1
USER_ID_MAX = 2**63 - 1


class Role(str, Enum):
    """The two account roles. Fixed at user creation."""

    ADMIN = "ADMIN"
    SHOP = "SHOP"


class AuthFailure(str, Enum):
    """Why a credential was rejected.

    The reason is kept for logging and tests only. The HTTP boundary flattens
    every variant to the same 401 so callers cannot learn which check failed.
    """

    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    BAD_CREDENTIALS = "bad_credentials"


@dataclass(frozen=True)
class UserIdentity:
    """The acting identity derived from a verified token or a password login.

    Immutable: once issued inside a token it is never modified mid-request.
    """

    user_id: int
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass
class User:
    """A persisted account.

    hashed_password is a bcrypt hash; the plaintext is never stored.
    id is None before the record is written to the database.
    """

    username: str
    role: Role
    hashed_password: str = ""
    id: int | None = None
    created_at: str | None = None

    def identity(self) -> UserIdentity:
        if self.id is None:
            raise ValueError("User has not been persisted yet")
        return UserIdentity(user_id=self.id, username=self.username, role=self.role)


def is_valid_user_id(value: object) -> bool:
    """Return True if value is an int (not bool) inside the canonical 64-bit range."""
    return isinstance(value, int) and not isinstance(value, bool) and USER_ID_MIN <= value <= USER_ID_MAX

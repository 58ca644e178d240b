"""
auth/credentials.py -- Username/password verification.

CredentialStore is the boundary between the login route and the password
hash: it looks the user up, runs bcrypt, and hands back either the identity
to embed in a token or AuthFailure.BAD_CREDENTIALS.

Timing equalization: bcrypt always runs, against _DUMMY_HASH when the
username does not exist, so response time does not reveal which usernames
are registered.
"""

from __future__ import annotations

import logging

from auth.models import AuthFailure, UserIdentity
from auth.store import UserStore
from auth.tokens import _DUMMY_HASH, verify_password

logger = logging.getLogger("shopfront.auth")


class CredentialStore:
    def __init__(self, users: UserStore) -> None:
        self._users = users

    def verify(self, username: str, plaintext: str) -> UserIdentity | AuthFailure:
        """Return the identity for a valid username/password pair, else BAD_CREDENTIALS."""
        user = self._users.get_by_username(username)
        if user is None or not user.hashed_password:
            # Equalize timing -- do NOT return before running bcrypt
            verify_password(plaintext, _DUMMY_HASH)
            logger.info("Login failed for unknown user")
            return AuthFailure.BAD_CREDENTIALS
        if not verify_password(plaintext, user.hashed_password):
            logger.info("Login failed for user_id=%s", user.id)
            return AuthFailure.BAD_CREDENTIALS
        return user.identity()

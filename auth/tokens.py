"""
auth/tokens.py -- Bearer token issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (username), userId, role, iat
       and exp. TokenService.verify() never raises: it returns either a
       UserIdentity or an AuthFailure variant, and the route layer turns any
       failure into a single generic 401.

       Verification order is parse -> signature -> expiry -> claims. A token
       that fails any step is rejected wholesale; no claim from an unverified
       token is ever returned to a caller.

  userId width: the claim is a JSON integer checked against the 64-bit signed
       range on both issue and verify. Python ints are arbitrary precision and
       json round-trips them exactly, so nothing narrows the value on the way
       through. Floats, bools and numeric strings are rejected as MALFORMED.

  Passwords: bcrypt used directly. The _DUMMY_HASH constant enables timing
       equalization in CredentialStore.verify() so response time does not
       reveal whether a username exists.

  SECRET_KEY: sourced from core.config.get_settings(), read once. The key is
       never mutated after startup, so concurrent verify() calls need no lock.

Layer rule: no imports from api/ or inventory/. Import from core/ is allowed.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import AuthFailure, Role, UserIdentity, is_valid_user_id
from core.config import get_settings

_ALGORITHM = "HS256"
# 32-byte HMAC-SHA256 digest, unpadded base64url.
_SIGNATURE_LENGTH = 43

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt truncates input beyond 72 bytes. The API layer caps passwords at
    128 characters (Pydantic field) and rejects nothing else.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except Exception:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("shopfront_timing_dummy")


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed, time-bounded bearer tokens.

    Usage:
        tokens = TokenService(secret_key, default_ttl=timedelta(hours=1))
        token = tokens.issue(identity)
        result = tokens.verify(token)   # UserIdentity | AuthFailure
    """

    def __init__(self, secret_key: str, default_ttl: timedelta = timedelta(hours=1)) -> None:
        self._secret_key = secret_key
        self.default_ttl = default_ttl

    def issue(self, identity: UserIdentity, ttl: timedelta | None = None) -> str:
        """Encode a signed JWT for the identity.

        A negative ttl produces a token that is already expired; tests use
        that to exercise the expiry path.

        Raises ValueError if identity.user_id is outside the 64-bit signed
        range -- such an id could not be verified later.
        """
        if not is_valid_user_id(identity.user_id):
            raise ValueError(f"user_id out of range: {identity.user_id!r}")
        now = datetime.now(timezone.utc)
        expires = now + (ttl if ttl is not None else self.default_ttl)
        payload = {
            "sub": identity.username,
            "userId": identity.user_id,
            "role": identity.role.value,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> UserIdentity | AuthFailure:
        """Verify a token and return the identity it carries, or the failure reason.

        Never raises. A header or payload that does not parse is MALFORMED.
        Any change to the signature segment is SIGNATURE_INVALID, including
        characters outside the base64url alphabet and edits that only touch
        the unused bits of the final character.
        """
        parts = token.split(".")
        if len(parts) != 3:
            return AuthFailure.MALFORMED
        header_segment, payload_segment, signature_segment = parts
        try:
            header = json.loads(base64url_decode(header_segment.encode("ascii")))
            payload = json.loads(base64url_decode(payload_segment.encode("ascii")))
        except Exception:
            return AuthFailure.MALFORMED
        if not isinstance(header, dict) or not isinstance(payload, dict):
            return AuthFailure.MALFORMED
        if header.get("alg") != _ALGORITHM:
            return AuthFailure.MALFORMED

        if not _is_canonical_signature(signature_segment):
            return AuthFailure.SIGNATURE_INVALID

        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError:
            return AuthFailure.EXPIRED
        except JWTError:
            # Structure already parsed above, so a failure here is the signature
            # or a registered claim of the wrong type.
            return AuthFailure.SIGNATURE_INVALID
        except Exception:
            return AuthFailure.MALFORMED

        identity = _identity_from_claims(claims)
        if identity is None:
            return AuthFailure.MALFORMED
        return identity


def _is_canonical_signature(segment: str) -> bool:
    """True if the segment is the one unpadded base64url spelling of its bytes.

    The stdlib decoder skips characters outside the alphabet and ignores the
    spare bits of the last character, so several strings decode to the same
    MAC. Only the exact re-encoding is accepted.
    """
    if len(segment) != _SIGNATURE_LENGTH:
        return False
    try:
        raw = base64url_decode(segment.encode("ascii"))
    except Exception:
        return False
    return base64url_encode(raw).decode("ascii") == segment


def _identity_from_claims(claims: dict) -> UserIdentity | None:
    """Map verified claims to a UserIdentity, or None if any claim is unusable."""
    user_id = claims.get("userId")
    username = claims.get("sub")
    role = claims.get("role")
    if not is_valid_user_id(user_id):
        return None
    if not isinstance(username, str) or not username:
        return None
    if not isinstance(claims.get("exp"), int):
        return None
    try:
        parsed_role = Role(role)
    except ValueError:
        return None
    return UserIdentity(user_id=user_id, username=username, role=parsed_role)


@lru_cache
def get_token_service() -> TokenService:
    """Return the process-wide TokenService built from Settings."""
    settings = get_settings()
    return TokenService(settings.secret_key, default_ttl=timedelta(seconds=settings.token_expire_seconds))

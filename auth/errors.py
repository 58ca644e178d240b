"""
auth/errors.py -- Typed access-control failures.

Each failure carries a stable HTTP status and machine-readable error code.
Nothing below the HTTP layer raises HTTPException; the exception handler in
api/main.py renders these into the ErrorResponse envelope.

  Unauthenticated   401  unauthorized
  InsufficientRole  403  insufficient_role
  NotOwner          403  not_owner
  ResourceNotFound  404  not_found
  BadRequest        400  bad_request

Layer rule: no imports from api/ or inventory/.
"""

from __future__ import annotations


class AccessError(Exception):
    """Base class for every failure the access-control core reports."""

    status_code: int = 500
    code: str = "access_error"
    default_message: str = "Access check failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AccessError):
    # Generic on purpose: never reveals whether the token was missing,
    # malformed, expired, or badly signed.
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required."


class InsufficientRole(AccessError):
    status_code = 403
    code = "insufficient_role"
    default_message = "Your role does not permit this operation."


class NotOwner(AccessError):
    status_code = 403
    code = "not_owner"
    default_message = "You don't have permission to modify this resource."


class ResourceNotFound(AccessError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class BadRequest(AccessError):
    status_code = 400
    code = "bad_request"
    default_message = "Bad request."

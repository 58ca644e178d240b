"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and authorization.

One path for every protected route:
  Authorization: Bearer <token> -> TokenService.verify() -> UserIdentity
  -> AuthorizationGuard.authorize(identity, policy) -> Allow | Deny

evaluate_access() is that path as a pure function: raw credential and policy
in, UserIdentity or a typed AccessError out. It never raises and has no
ambient state -- the identity it returns is passed explicitly to whatever the
route calls next.

authorize_request() is the raising wrapper route handlers call when the policy
depends on a path parameter (ownership). require_roles() builds a Depends()
dependency for role-only policies.

Every token failure (missing, malformed, expired, bad signature) becomes the
same Unauthenticated error. The precise reason is logged at debug level only.

Layer rule: no imports from inventory/. The guard instance lives on
app.state and is wired in api/main.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Request

from auth.errors import AccessError, Unauthenticated
from auth.models import AuthFailure, Role, UserIdentity
from auth.policy import AuthorizationGuard, Deny, Policy, RoleOnly, roles
from auth.tokens import TokenService, get_token_service

logger = logging.getLogger("shopfront.auth")

_BEARER_PREFIX = "Bearer "


def bearer_credential(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None if absent."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(_BEARER_PREFIX):
        token = auth_header[len(_BEARER_PREFIX) :].strip()
        return token or None
    return None


def evaluate_access(
    credential: str | None,
    policy: Policy | None,
    tokens: TokenService,
    guard: AuthorizationGuard,
) -> UserIdentity | AccessError:
    """Verify the credential and evaluate the policy. Never raises.

    policy=None means "any authenticated identity".
    """
    if not credential:
        return Unauthenticated()
    result = tokens.verify(credential)
    if isinstance(result, AuthFailure):
        logger.debug("Token rejected: %s", result.value)
        return Unauthenticated()
    if policy is None:
        return result
    decision = guard.authorize(result, policy)
    if isinstance(decision, Deny):
        return decision.to_error()
    return result


def authorize_request(request: Request, policy: Policy | None = None) -> UserIdentity:
    """Authenticate the request and enforce policy. Raises AccessError on failure.

    Use inside a route when the policy needs a path parameter:
        identity = authorize_request(request, RoleAndOwnership(roles(Role.SHOP), ResourceKind.SHOP, shop_id))
    """
    outcome = evaluate_access(
        bearer_credential(request),
        policy,
        get_token_service(),
        request.app.state.guard,
    )
    if isinstance(outcome, AccessError):
        raise outcome
    return outcome


def get_current_identity(request: Request) -> UserIdentity:
    """Require authentication only. Raises Unauthenticated (401).

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: UserIdentity = Depends(get_current_identity)): ...
    """
    return authorize_request(request, None)


def require_roles(*allowed: Role) -> Callable[[Request], UserIdentity]:
    """Build a dependency enforcing RoleOnly(allowed). 401 if unauthenticated, 403 if role not allowed.

    Use as a FastAPI dependency:
        @router.get("/admin-only")
        def route(identity: UserIdentity = Depends(require_roles(Role.ADMIN))): ...
    """
    policy = RoleOnly(roles(*allowed))

    def dependency(request: Request) -> UserIdentity:
        return authorize_request(request, policy)

    return dependency

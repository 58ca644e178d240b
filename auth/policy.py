"""
auth/policy.py -- Role and ownership policies, and the guard that evaluates them.

Two layers, always in this order:
  1. Role: the identity's role must be in the policy's allowed set.
  2. Ownership (RoleAndOwnership only): the resource must exist, and the
     identity must own it -- unless the identity is ADMIN, which bypasses
     ownership but not existence.

Ownership is resolved through an OwnershipLookup so this module stays free of
persistence imports. inventory.ownership.OwnershipResolver implements it.

The guard returns a decision value rather than raising. Deny.to_error()
converts a denial to the typed AccessError the HTTP boundary renders, which
keeps the 404-vs-403 distinction intact end-to-end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from auth.errors import AccessError, InsufficientRole, NotOwner, ResourceNotFound
from auth.models import Role, UserIdentity
from core.models import NotFound, ResourceKind

logger = logging.getLogger("shopfront.auth")


class OwnershipLookup(Protocol):
    def resolve_owner(self, kind: ResourceKind, resource_id: int) -> int | NotFound: ...


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RoleOnly:
    allowed: frozenset[Role]


@dataclass(frozen=True)
class RoleAndOwnership:
    allowed: frozenset[Role]
    kind: ResourceKind
    resource_id: int


Policy = Union[RoleOnly, RoleAndOwnership]


def roles(*allowed: Role) -> frozenset[Role]:
    return frozenset(allowed)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class DenyReason(str, Enum):
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_OWNER = "not_owner"
    RESOURCE_NOT_FOUND = "resource_not_found"


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    message: str = ""

    def to_error(self) -> AccessError:
        if self.reason is DenyReason.INSUFFICIENT_ROLE:
            return InsufficientRole(self.message or None)
        if self.reason is DenyReason.NOT_OWNER:
            return NotOwner(self.message or None)
        if self.reason is DenyReason.RESOURCE_NOT_FOUND:
            return ResourceNotFound(self.message or None)
        raise AssertionError(f"Unhandled deny reason: {self.reason!r}")


Decision = Union[Allow, Deny]

ALLOW = Allow()


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------


class AuthorizationGuard:
    """Evaluates a Policy for a verified identity.

    Usage:
        guard = AuthorizationGuard(OwnershipResolver(inventory_store))
        decision = guard.authorize(identity, RoleOnly(roles(Role.ADMIN)))
        if isinstance(decision, Deny):
            raise decision.to_error()
    """

    def __init__(self, ownership: OwnershipLookup) -> None:
        self._ownership = ownership

    def authorize(self, identity: UserIdentity, policy: Policy) -> Decision:
        if identity.role not in policy.allowed:
            logger.info("Denied user_id=%s role=%s: role not allowed", identity.user_id, identity.role.value)
            return Deny(DenyReason.INSUFFICIENT_ROLE)

        if isinstance(policy, RoleOnly):
            return ALLOW
        if isinstance(policy, RoleAndOwnership):
            return self._check_ownership(identity, policy)
        raise AssertionError(f"Unhandled policy type: {type(policy).__name__}")

    def _check_ownership(self, identity: UserIdentity, policy: RoleAndOwnership) -> Decision:
        owner = self._ownership.resolve_owner(policy.kind, policy.resource_id)
        if isinstance(owner, NotFound):
            return Deny(DenyReason.RESOURCE_NOT_FOUND, owner.message)
        if identity.role is Role.ADMIN:
            return ALLOW
        if owner == identity.user_id:
            return ALLOW
        logger.info(
            "Denied user_id=%s: not owner of %s %s",
            identity.user_id,
            policy.kind.value,
            policy.resource_id,
        )
        return Deny(DenyReason.NOT_OWNER, f"You don't have permission to modify this {policy.kind.value}")

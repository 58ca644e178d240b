"""
api/routes/v1/users.py -- User administration (ADMIN only).

Routes:
  POST   /api/v1/users                 -- register a user (ADMIN or SHOP role)
  GET    /api/v1/users                 -- list users, optionally by ?role=
  GET    /api/v1/users/{user_id}       -- user detail
  DELETE /api/v1/users/{user_id}       -- delete a user
  PUT    /api/v1/users/{user_id}/password -- reset a user's password

Every route on this router requires RoleOnly{ADMIN}; the router-level
dependency applies it so handlers cannot forget it. Roles are fixed at
creation: there is no endpoint that changes one.

Delete guards:
  An admin cannot delete their own account (it would lock them out mid-session).
  A user that still owns shops cannot be deleted; their shops would be orphaned.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import PasswordUpdate, PathId, UserCreate, UserResponse
from auth.dependencies import require_roles
from auth.errors import BadRequest, ResourceNotFound
from auth.models import Role, User, UserIdentity
from auth.store import UserStore
from auth.tokens import hash_password
from inventory.store import InventoryStore

logger = logging.getLogger("shopfront.api")

_require_admin = require_roles(Role.ADMIN)

router = APIRouter(dependencies=[Depends(_require_admin)])


def _user_not_found(user_id: int) -> ResourceNotFound:
    return ResourceNotFound(f"User not found with id: {user_id}")


@router.post("/users", response_model=UserResponse, status_code=201)
def register_user(request: Request, body: UserCreate) -> UserResponse:
    """Create a user with a bcrypt-hashed password. Duplicate usernames are rejected with 400."""
    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_username(body.username) is not None:
        raise BadRequest("Username already exists")
    user = User(username=body.username, role=body.role, hashed_password=hash_password(body.password))
    try:
        user_id = user_store.create_user(user)
    except IntegrityError:
        # Lost a race with a concurrent registration of the same username.
        raise BadRequest("Username already exists") from None
    logger.info("Registered user_id=%s role=%s", user_id, body.role.value)
    return UserResponse(id=user_id, username=body.username, role=body.role)


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request, role: Optional[Role] = None) -> list[UserResponse]:
    """List accounts ordered by id. ?role=SHOP or ?role=ADMIN narrows the list."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users(role)]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: PathId) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id)
    if user is None:
        raise _user_not_found(user_id)
    return UserResponse.from_user(user)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: PathId,
    identity: UserIdentity = Depends(_require_admin),
) -> Response:
    user_store: UserStore = request.app.state.user_store
    inventory: InventoryStore = request.app.state.inventory
    if user_id == identity.user_id:
        raise BadRequest("You cannot delete your own account")
    if user_store.get_by_id(user_id) is None:
        raise _user_not_found(user_id)
    if inventory.count_shops_by_owner(user_id) > 0:
        raise BadRequest("User still owns shops; delete them first")
    user_store.delete_user(user_id)
    logger.info("Deleted user_id=%s by admin user_id=%s", user_id, identity.user_id)
    return Response(status_code=204)


@router.put("/users/{user_id}/password", response_model=UserResponse)
def update_password(request: Request, user_id: PathId, body: PasswordUpdate) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    if not user_store.update_password(user_id, hash_password(body.new_password)):
        raise _user_not_found(user_id)
    return UserResponse.from_user(user_store.get_by_id(user_id))

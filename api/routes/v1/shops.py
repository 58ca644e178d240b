"""
api/routes/v1/shops.py -- Shop routes for the Shopfront REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  POST   /shops          -- register a shop            RoleOnly{SHOP, ADMIN}
  GET    /shops          -- list every shop            RoleOnly{ADMIN}
  GET    /shops/mine     -- list the caller's shops    RoleOnly{SHOP}
  DELETE /shops/bulk     -- all-or-nothing bulk delete RoleOnly{SHOP, ADMIN} + coordinator
  GET    /shops/{id}     -- shop detail                RoleOnly{SHOP, ADMIN}
  DELETE /shops/{id}     -- delete one shop            RoleAndOwnership{SHOP, ADMIN}(shop)

Ownership:
  A SHOP caller always registers shops for themselves; owner_id in the body
  is ignored. An ADMIN caller may register a shop on behalf of an existing
  user by naming owner_id; without it the admin owns the shop.

  Deleting a shop removes its products in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, Response

from api.models import PathId, ResourceId, ShopCreate, ShopResponse
from auth.dependencies import authorize_request, require_roles
from auth.errors import BadRequest, ResourceNotFound
from auth.models import Role, UserIdentity
from auth.policy import RoleAndOwnership, roles
from auth.store import UserStore
from core.models import NotFound, ResourceKind
from inventory.bulk import BulkMutationCoordinator
from inventory.models import Shop
from inventory.store import InventoryStore

logger = logging.getLogger("shopfront.api")

router = APIRouter()


# ---------------------------------------------------------------------------
# POST /shops -- register a shop
# ---------------------------------------------------------------------------


@router.post("/shops", response_model=ShopResponse, status_code=201)
def register_shop(
    request: Request,
    body: ShopCreate,
    identity: UserIdentity = Depends(require_roles(Role.SHOP, Role.ADMIN)),
) -> ShopResponse:
    """Register a new shop. SHOP callers become the owner."""
    inventory: InventoryStore = request.app.state.inventory
    owner_id = identity.user_id
    if identity.is_admin and body.owner_id is not None:
        user_store: UserStore = request.app.state.user_store
        owner = user_store.get_by_id(body.owner_id)
        if owner is None:
            raise BadRequest(f"Owner user {body.owner_id} does not exist")
        owner_id = owner.id

    shop = Shop(
        owner_id=owner_id,
        name=body.name,
        address=body.address,
        phone=body.phone,
        latitude=body.latitude,
        longitude=body.longitude,
        open_hours=body.open_hours,
        delivery_option=body.delivery_option,
    )
    shop.id = inventory.create_shop(shop)
    logger.info("Registered shop_id=%s owner_id=%s", shop.id, owner_id)
    return ShopResponse.from_shop(shop)


# ---------------------------------------------------------------------------
# GET /shops and /shops/mine
# ---------------------------------------------------------------------------


@router.get("/shops", response_model=list[ShopResponse], dependencies=[Depends(require_roles(Role.ADMIN))])
def list_all_shops(request: Request) -> list[ShopResponse]:
    """Return every shop in the system (ADMIN only)."""
    inventory: InventoryStore = request.app.state.inventory
    return [ShopResponse.from_shop(s) for s in inventory.list_shops()]


@router.get("/shops/mine", response_model=list[ShopResponse])
def list_my_shops(
    request: Request,
    identity: UserIdentity = Depends(require_roles(Role.SHOP)),
) -> list[ShopResponse]:
    """Return the shops owned by the caller."""
    inventory: InventoryStore = request.app.state.inventory
    return [ShopResponse.from_shop(s) for s in inventory.list_shops_by_owner(identity.user_id)]


# ---------------------------------------------------------------------------
# DELETE /shops/bulk -- must be registered before /shops/{shop_id}
# ---------------------------------------------------------------------------


@router.delete("/shops/bulk", status_code=204)
def delete_shops(
    request: Request,
    shop_ids: Annotated[list[ResourceId], Body()],
    identity: UserIdentity = Depends(require_roles(Role.SHOP, Role.ADMIN)),
) -> Response:
    """Delete several shops at once. Either every listed shop is deleted or none is.

    Body: a JSON array of shop ids, e.g. [1, 2, 3].
    """
    coordinator: BulkMutationCoordinator = request.app.state.bulk
    coordinator.delete_shops(identity, shop_ids)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# GET /shops/{shop_id}
# ---------------------------------------------------------------------------


@router.get(
    "/shops/{shop_id}",
    response_model=ShopResponse,
    dependencies=[Depends(require_roles(Role.SHOP, Role.ADMIN))],
)
def get_shop(request: Request, shop_id: PathId) -> ShopResponse:
    inventory: InventoryStore = request.app.state.inventory
    found = inventory.get_shop(shop_id)
    if isinstance(found, NotFound):
        raise ResourceNotFound(found.message)
    return ShopResponse.from_shop(found.entity)


# ---------------------------------------------------------------------------
# DELETE /shops/{shop_id}
# ---------------------------------------------------------------------------


@router.delete("/shops/{shop_id}", status_code=204)
def delete_shop(request: Request, shop_id: PathId) -> Response:
    """Delete one shop and all of its products. Owner or ADMIN."""
    identity = authorize_request(
        request,
        RoleAndOwnership(roles(Role.SHOP, Role.ADMIN), ResourceKind.SHOP, shop_id),
    )
    # Single-target batch: the same transaction re-checks existence and
    # ownership, so a shop deleted concurrently yields 404, not a silent no-op.
    coordinator: BulkMutationCoordinator = request.app.state.bulk
    coordinator.delete_shops(identity, [shop_id])
    return Response(status_code=204)

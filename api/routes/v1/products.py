"""
api/routes/v1/products.py -- Product routes for the Shopfront REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  POST   /shops/{shop_id}/products -- add a product to a shop  RoleAndOwnership{SHOP}(shop)
  GET    /shops/{shop_id}/products -- list a shop's products   RoleOnly{SHOP, ADMIN}
  DELETE /products/bulk            -- all-or-nothing delete    RoleOnly{SHOP} + coordinator
  PUT    /products/{product_id}    -- replace product fields   RoleAndOwnership{SHOP}(product)
  DELETE /products/{product_id}    -- delete one product       RoleAndOwnership{SHOP}(product)

A product's owner is the owner of its parent shop. The product's shop_id is
fixed at creation; PUT never moves a product between shops.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import PathId, ProductRequest, ProductResponse, ResourceId
from auth.dependencies import authorize_request, require_roles
from auth.errors import ResourceNotFound
from auth.models import Role, UserIdentity
from auth.policy import RoleAndOwnership, roles
from core.models import NotFound, ResourceKind
from inventory.bulk import BulkMutationCoordinator
from inventory.models import Product
from inventory.store import InventoryStore

logger = logging.getLogger("shopfront.api")

router = APIRouter()


# ---------------------------------------------------------------------------
# /shops/{shop_id}/products
# ---------------------------------------------------------------------------


@router.post("/shops/{shop_id}/products", response_model=ProductResponse, status_code=201)
def add_product(request: Request, shop_id: PathId, body: ProductRequest) -> ProductResponse:
    """Add a product to one of the caller's shops."""
    identity = authorize_request(
        request,
        RoleAndOwnership(roles(Role.SHOP), ResourceKind.SHOP, shop_id),
    )
    inventory: InventoryStore = request.app.state.inventory
    product = Product(
        shop_id=shop_id,
        name=body.name,
        description=body.description,
        price=body.price,
        stock=body.stock,
        category=body.category,
    )
    try:
        product.id = inventory.create_product(product)
    except IntegrityError:
        # The shop was deleted between the ownership check and the insert.
        raise ResourceNotFound(f"Shop not found with id: {shop_id}") from None
    logger.info("Added product_id=%s to shop_id=%s by user_id=%s", product.id, shop_id, identity.user_id)
    return ProductResponse.from_product(product)


@router.get(
    "/shops/{shop_id}/products",
    response_model=list[ProductResponse],
    dependencies=[Depends(require_roles(Role.SHOP, Role.ADMIN))],
)
def list_products(request: Request, shop_id: PathId) -> list[ProductResponse]:
    inventory: InventoryStore = request.app.state.inventory
    found = inventory.get_shop(shop_id)
    if isinstance(found, NotFound):
        raise ResourceNotFound(found.message)
    return [ProductResponse.from_product(p) for p in inventory.list_products(shop_id)]


# ---------------------------------------------------------------------------
# DELETE /products/bulk -- must be registered before /products/{product_id}
# ---------------------------------------------------------------------------


@router.delete("/products/bulk", status_code=204)
def delete_products(
    request: Request,
    product_ids: Annotated[list[ResourceId], Body()],
    identity: UserIdentity = Depends(require_roles(Role.SHOP)),
) -> Response:
    """Delete several products at once. Either every listed product is deleted or none is.

    Body: a JSON array of product ids, e.g. [4, 5].
    """
    coordinator: BulkMutationCoordinator = request.app.state.bulk
    coordinator.delete_products(identity, product_ids)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# /products/{product_id}
# ---------------------------------------------------------------------------


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(request: Request, product_id: PathId, body: ProductRequest) -> ProductResponse:
    """Replace the mutable fields of a product in one of the caller's shops."""
    authorize_request(
        request,
        RoleAndOwnership(roles(Role.SHOP), ResourceKind.PRODUCT, product_id),
    )
    inventory: InventoryStore = request.app.state.inventory
    updated = inventory.update_product(
        product_id,
        name=body.name,
        description=body.description,
        price=body.price,
        stock=body.stock,
        category=body.category,
    )
    found = inventory.get_product(product_id)
    if not updated or isinstance(found, NotFound):
        raise ResourceNotFound(f"Product not found with id: {product_id}")
    return ProductResponse.from_product(found.entity)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(request: Request, product_id: PathId) -> Response:
    identity = authorize_request(
        request,
        RoleAndOwnership(roles(Role.SHOP), ResourceKind.PRODUCT, product_id),
    )
    coordinator: BulkMutationCoordinator = request.app.state.bulk
    coordinator.delete_products(identity, [product_id])
    return Response(status_code=204)

"""
inventory/ownership.py -- Resolves who ultimately controls a shop or product.

Ownership chain: Product -> Shop -> owning user. A product's owner is derived
from its parent shop on every call; nothing here caches across requests.

is_owner()/is_product_owner() collapse "missing" and "not yours" into False.
Callers that must tell them apart (the authorization guard) use
resolve_owner(), which returns the owner id or NotFound from a single query.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import Connection

from core.models import NotFound, ResourceKind
from inventory.store import InventoryStore


class OwnershipResolver:
    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def owner_of(self, shop_id: int, conn: Optional[Connection] = None) -> int | NotFound:
        return self._store.shop_owner(shop_id, conn=conn)

    def product_owner_of(self, product_id: int, conn: Optional[Connection] = None) -> int | NotFound:
        # Joined lookup: never reads the product and its shop in two steps.
        return self._store.product_owner(product_id, conn=conn)

    def is_owner(self, shop_id: int, user_id: int) -> bool:
        """True iff the shop exists and belongs to user_id."""
        owner = self.owner_of(shop_id)
        return not isinstance(owner, NotFound) and owner == user_id

    def is_product_owner(self, product_id: int, user_id: int) -> bool:
        """True iff the product exists and its parent shop belongs to user_id."""
        owner = self.product_owner_of(product_id)
        return not isinstance(owner, NotFound) and owner == user_id

    def exists(self, kind: ResourceKind, resource_id: int) -> bool:
        return not isinstance(self.resolve_owner(kind, resource_id), NotFound)

    def resolve_owner(self, kind: ResourceKind, resource_id: int) -> int | NotFound:
        if kind is ResourceKind.SHOP:
            return self.owner_of(resource_id)
        if kind is ResourceKind.PRODUCT:
            return self.product_owner_of(resource_id)
        raise AssertionError(f"Unhandled resource kind: {kind!r}")

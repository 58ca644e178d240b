"""
inventory/bulk.py -- All-or-nothing bulk deletion of shops and products.

Algorithm (validate-then-commit, one transaction):
  1. Empty batch                      -> BadRequest
  2. Resolve every id in one query;
     any id missing                   -> ResourceNotFound (whole batch)
  3. Non-admin and any target not
     owned by the caller              -> NotOwner (whole batch)
  4. Delete every target; shops take their products with them.

Steps 2-4 share one transaction, so a concurrent delete or a failed check
leaves every target in place. There is no per-item result and no partial
deletion of the subset that passed.

Role gating (which roles may call bulk delete at all) happens before this
module, in the route's RoleOnly policy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from auth.errors import BadRequest, NotOwner, ResourceNotFound
from auth.models import UserIdentity
from inventory.store import InventoryStore

logger = logging.getLogger("shopfront.inventory")


def _unique(ids: Iterable[int]) -> list[int]:
    """Deduplicate while preserving request order."""
    seen: set[int] = set()
    result: list[int] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            result.append(i)
    return result


class BulkMutationCoordinator:
    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def delete_shops(self, identity: UserIdentity, shop_ids: Iterable[int]) -> int:
        """Delete every shop in shop_ids (with their products) or none of them.

        Returns the number of shops deleted.
        Raises BadRequest, ResourceNotFound or NotOwner; nothing is deleted when it raises.
        """
        ids = _unique(shop_ids)
        if not ids:
            raise BadRequest("Shop IDs list cannot be empty")

        with self._store.transaction() as conn:
            shops = self._store.find_shops(ids, conn=conn, for_update=True)
            if len(shops) < len(ids):
                raise ResourceNotFound("One or more shops not found")
            if not identity.is_admin:
                for shop in shops:
                    if shop.owner_id != identity.user_id:
                        raise NotOwner(f"You don't have permission to delete shop with id: {shop.id}")
            deleted = self._store.delete_shops(ids, conn=conn)

        logger.info("Bulk deleted %d shop(s) for user_id=%s", deleted, identity.user_id)
        return deleted

    def delete_products(self, identity: UserIdentity, product_ids: Iterable[int]) -> int:
        """Delete every product in product_ids or none of them.

        Ownership is checked against each product's parent shop, resolved in
        the same joined query that confirms the product exists.
        """
        ids = _unique(product_ids)
        if not ids:
            raise BadRequest("Product IDs list cannot be empty")

        with self._store.transaction() as conn:
            rows = self._store.find_products_with_owner(ids, conn=conn, for_update=True)
            if len(rows) < len(ids):
                raise ResourceNotFound("One or more products not found")
            if not identity.is_admin:
                for product, owner_id in rows:
                    if owner_id != identity.user_id:
                        raise NotOwner(f"You don't have permission to delete product with id: {product.id}")
            deleted = self._store.delete_products(ids, conn=conn)

        logger.info("Bulk deleted %d product(s) for user_id=%s", deleted, identity.user_id)
        return deleted

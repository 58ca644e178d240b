"""Unit tests for inventory/bulk.py -- all-or-nothing bulk deletion.

Covers:
- owner deletes several of their own shops; products go with them
- {owned, not owned} by a non-admin -> NotOwner, both shops still exist
- {exists, missing} -> ResourceNotFound, the existing shop still exists
- empty batch -> BadRequest
- duplicate ids count once
- ADMIN deletes across owners
- product batches check ownership through the parent shop
"""

import pytest

from auth.errors import BadRequest, NotOwner, ResourceNotFound
from auth.models import Role, UserIdentity
from conftest import make_product, make_shop
from core.models import Found, NotFound
from inventory.bulk import BulkMutationCoordinator

ADMIN = UserIdentity(user_id=1, username="admin", role=Role.ADMIN)
ALICE = UserIdentity(user_id=2, username="alice", role=Role.SHOP)
BOB = UserIdentity(user_id=3, username="bob", role=Role.SHOP)


@pytest.fixture
def coordinator(inventory) -> BulkMutationCoordinator:
    return BulkMutationCoordinator(inventory)


class TestBulkDeleteShops:
    def test_owner_deletes_own_shops(self, inventory, coordinator) -> None:
        s1 = make_shop(inventory, ALICE.user_id)
        s2 = make_shop(inventory, ALICE.user_id)
        product_id = make_product(inventory, s1)

        assert coordinator.delete_shops(ALICE, [s1, s2]) == 2
        assert isinstance(inventory.get_shop(s1), NotFound)
        assert isinstance(inventory.get_shop(s2), NotFound)
        assert isinstance(inventory.get_product(product_id), NotFound)

    def test_mixed_ownership_deletes_nothing(self, inventory, coordinator) -> None:
        mine = make_shop(inventory, ALICE.user_id)
        theirs = make_shop(inventory, BOB.user_id)
        product_id = make_product(inventory, mine)

        with pytest.raises(NotOwner):
            coordinator.delete_shops(ALICE, [mine, theirs])

        assert isinstance(inventory.get_shop(mine), Found)
        assert isinstance(inventory.get_shop(theirs), Found)
        assert isinstance(inventory.get_product(product_id), Found)

    def test_missing_id_deletes_nothing(self, inventory, coordinator) -> None:
        mine = make_shop(inventory, ALICE.user_id)

        with pytest.raises(ResourceNotFound):
            coordinator.delete_shops(ALICE, [mine, 9999])

        assert isinstance(inventory.get_shop(mine), Found)

    def test_missing_wins_over_not_owner(self, inventory, coordinator) -> None:
        theirs = make_shop(inventory, BOB.user_id)
        with pytest.raises(ResourceNotFound):
            coordinator.delete_shops(ALICE, [theirs, 9999])

    def test_empty_batch(self, coordinator) -> None:
        with pytest.raises(BadRequest) as exc_info:
            coordinator.delete_shops(ALICE, [])
        assert exc_info.value.status_code == 400

    def test_duplicate_ids_count_once(self, inventory, coordinator) -> None:
        s1 = make_shop(inventory, ALICE.user_id)
        assert coordinator.delete_shops(ALICE, [s1, s1, s1]) == 1

    def test_admin_deletes_any_owner(self, inventory, coordinator) -> None:
        a = make_shop(inventory, ALICE.user_id)
        b = make_shop(inventory, BOB.user_id)
        assert coordinator.delete_shops(ADMIN, [a, b]) == 2
        assert inventory.list_shops() == []

    def test_admin_still_needs_every_id_to_exist(self, inventory, coordinator) -> None:
        a = make_shop(inventory, ALICE.user_id)
        with pytest.raises(ResourceNotFound):
            coordinator.delete_shops(ADMIN, [a, 9999])
        assert isinstance(inventory.get_shop(a), Found)


class TestBulkDeleteProducts:
    def test_owner_deletes_products_across_own_shops(self, inventory, coordinator) -> None:
        s1 = make_shop(inventory, ALICE.user_id)
        s2 = make_shop(inventory, ALICE.user_id)
        p1 = make_product(inventory, s1)
        p2 = make_product(inventory, s2)

        assert coordinator.delete_products(ALICE, [p1, p2]) == 2
        assert isinstance(inventory.get_shop(s1), Found)
        assert inventory.list_products(s1) == []

    def test_product_in_foreign_shop_deletes_nothing(self, inventory, coordinator) -> None:
        mine = make_product(inventory, make_shop(inventory, ALICE.user_id))
        theirs = make_product(inventory, make_shop(inventory, BOB.user_id))

        with pytest.raises(NotOwner):
            coordinator.delete_products(ALICE, [mine, theirs])

        assert isinstance(inventory.get_product(mine), Found)
        assert isinstance(inventory.get_product(theirs), Found)

    def test_missing_product_deletes_nothing(self, inventory, coordinator) -> None:
        mine = make_product(inventory, make_shop(inventory, ALICE.user_id))
        with pytest.raises(ResourceNotFound):
            coordinator.delete_products(ALICE, [mine, 9999])
        assert isinstance(inventory.get_product(mine), Found)

    def test_empty_batch(self, coordinator) -> None:
        with pytest.raises(BadRequest):
            coordinator.delete_products(ALICE, [])

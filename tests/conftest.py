"""
tests/conftest.py -- Shared test fixtures for Shopfront tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + inventory
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_env: TestClient plus an admin and two shop owners with bearer tokens
  - user_store / inventory: function-scoped plain in-memory stores for unit tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the API fixtures because TestClient runs route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_state
from auth.models import Role, User, UserIdentity
from auth.store import UserStore
from auth.tokens import get_token_service, hash_password
from inventory.models import DeliveryOption, Product, Shop
from inventory.store import InventoryStore

_db_counter = itertools.count()

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, InventoryStore]:
    """Create isolated named shared-memory SQLite stores for one test module.

    Users and inventory share one database, as they do in production, so the
    user-deletion guard sees the same shops the routes create.
    """
    url = f"sqlite:///file:test_shopfront_{db_suffix}_{next(_db_counter)}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), InventoryStore(db_url=url)


def _patch_lifespan(user_store: UserStore, inventory: InventoryStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        wire_state(app, user_store, inventory)
        yield

    return test_lifespan


def make_user(store: UserStore, username: str, role: Role, password: str = "secret123") -> UserIdentity:
    """Persist a user and return its identity."""
    uid = store.create_user(User(username=username, role=role, hashed_password=hash_password(password)))
    return UserIdentity(user_id=uid, username=username, role=role)


def make_shop(store: InventoryStore, owner_id: int, name: str = "Corner Shop") -> int:
    return store.create_shop(
        Shop(
            owner_id=owner_id,
            name=name,
            address="1 High Street",
            phone="555-0100",
            latitude=51.5,
            longitude=-0.12,
            open_hours="09:00-17:00",
            delivery_option=DeliveryOption.NO_DELIVERY,
        )
    )


def make_product(store: InventoryStore, shop_id: int, name: str = "Tea", price: float = 2.5) -> int:
    return store.create_product(Product(shop_id=shop_id, name=name, price=price, stock=10))


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


@dataclass
class ApiEnv:
    client: TestClient
    user_store: UserStore
    inventory: InventoryStore
    admin: UserIdentity
    owner_a: UserIdentity
    owner_b: UserIdentity
    admin_token: str
    owner_a_token: str
    owner_b_token: str


@pytest.fixture(scope="module")
def api_env(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores.
    Users: testadmin (ADMIN), owner_a and owner_b (SHOP), all with
    password "secret123".
    """
    user_store, inventory = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])

    admin = make_user(user_store, "testadmin", Role.ADMIN)
    owner_a = make_user(user_store, "owner_a", Role.SHOP)
    owner_b = make_user(user_store, "owner_b", Role.SHOP)

    tokens = get_token_service()
    app.router.lifespan_context = _patch_lifespan(user_store, inventory)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiEnv(
            client=client,
            user_store=user_store,
            inventory=inventory,
            admin=admin,
            owner_a=owner_a,
            owner_b=owner_b,
            admin_token=tokens.issue(admin),
            owner_a_token=tokens.issue(owner_a),
            owner_b_token=tokens.issue(owner_b),
        )

    inventory.close()
    user_store.close()


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def inventory() -> Generator[InventoryStore, None, None]:
    s = InventoryStore("sqlite:///:memory:")
    yield s
    s.close()

"""
auth/seed.py -- Demo account seeding for local development.

Creates admin/admin123 (ADMIN) and shop1/shop123 (SHOP) on an empty user
table. Runs at startup when SEED_DEMO_USERS=true, or on demand through
`python main.py seed`. Never enable it in production.
"""

from __future__ import annotations

import logging

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import hash_password

logger = logging.getLogger("shopfront.auth")

DEMO_USERS: tuple[tuple[str, str, Role], ...] = (
    ("admin", "admin123", Role.ADMIN),
    ("shop1", "shop123", Role.SHOP),
)


def seed_demo_users(user_store: UserStore) -> list[int]:
    """Insert the demo accounts if no user exists yet. Returns the new user ids."""
    if user_store.has_users():
        logger.info("User table not empty; skipping demo seed")
        return []
    created: list[int] = []
    for username, password, role in DEMO_USERS:
        user = User(username=username, role=role, hashed_password=hash_password(password))
        created.append(user_store.create_user(user))
    logger.warning("Seeded %d demo users with well-known passwords", len(created))
    return created

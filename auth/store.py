"""
auth/store.py -- SQLAlchemy Core persistence for user accounts.

Same Repository + Data Mapper shape as inventory/store.py: UserStore owns
the SQL, _row_to_user turns rows into User dataclasses.

Writes run inside engine.begin() so each one commits or rolls back on its
own. Reads use a plain connection and never hold a transaction open.

Only bcrypt hashes reach this layer; plaintext passwords stop at the route
or CLI that calls hash_password().

Layer rule: no imports from api/ or inventory/. The "user still owns shops"
rule lives in the users route, which can see both stores.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, Integer, MetaData, String, Table, Text, exists, select
from sqlalchemy.engine import Engine
from sqlalchemy.sql.elements import ColumnElement

from auth.models import Role, User
from core.config import get_settings
from core.db import create_store_engine

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    # 64-bit everywhere; SQLite only autoincrements a column typed INTEGER.
    Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False),
    Column("created_at", String(32), nullable=False),
)


class UserStore:
    """Repository for User accounts.

    Usage:
        users = UserStore()                 # settings.database_url
        uid = users.create_user(User(username="shop1", role=Role.SHOP, hashed_password=h))
        users.get_by_id(uid)
        users.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = create_store_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def _first(self, where: ColumnElement[bool]) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(select(_users).where(where).limit(1)).fetchone()
        if row is None:
            return None
        return _row_to_user(row)

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            return bool(conn.execute(select(exists().select_from(_users))).scalar())

    def create_user(self, user: User) -> int:
        """Insert the account and return its id.

        A taken username surfaces as sqlalchemy.exc.IntegrityError from the
        unique constraint; routes translate it to 400.
        """
        values = {
            "username": user.username,
            "hashed_password": user.hashed_password,
            "role": user.role.value,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        with self.engine.begin() as conn:
            return conn.execute(_users.insert().values(**values)).inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Exact, case-sensitive match."""
        return self._first(_users.c.username == username)

    def get_by_id(self, user_id: int) -> User | None:
        return self._first(_users.c.id == user_id)

    def list_users(self, role: Role | None = None) -> list[User]:
        """All accounts ordered by id, optionally only those with the given role."""
        stmt = select(_users).order_by(_users.c.id)
        if role is not None:
            stmt = stmt.where(_users.c.role == role.value)
        with self.engine.connect() as conn:
            return [_row_to_user(r) for r in conn.execute(stmt)]

    def update_password(self, user_id: int, hashed_password: str) -> bool:
        """Swap in a new bcrypt hash. False when no such user."""
        stmt = _users.update().where(_users.c.id == user_id).values(hashed_password=hashed_password)
        with self.engine.begin() as conn:
            return conn.execute(stmt).rowcount == 1

    def delete_user(self, user_id: int) -> bool:
        """Remove the account. False when no such user."""
        with self.engine.begin() as conn:
            return conn.execute(_users.delete().where(_users.c.id == user_id)).rowcount == 1

    def close(self) -> None:
        self.engine.dispose()


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        role=Role(row.role),
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )

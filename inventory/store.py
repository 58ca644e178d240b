"""
inventory/store.py -- SQLAlchemy-backed persistence layer for shops and products.

Uses SQLAlchemy Core (not ORM) so the dataclasses in inventory/models.py stay
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. InventoryStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Lookups return Found(entity) | NotFound(kind, id) instead of raising, so the
authorization layer can tell "missing" apart from "not yours".

Transactions:
  Every method accepts an optional conn. Without one it opens and commits its
  own connection. Inside `with store.transaction() as conn:` callers pass conn
  through so a whole read-check-delete sequence commits or rolls back as one
  unit (see inventory/bulk.py).

Cascade:
  products.shop_id is a FOREIGN KEY with ON DELETE CASCADE, and delete_shops()
  also removes child products explicitly in the same statement batch, so a
  product never outlives its shop even on backends with FKs disabled.

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    select,
)
from sqlalchemy.engine import Connection, Engine

from core.config import get_settings
from core.db import create_store_engine
from core.models import Found, Lookup, NotFound, ResourceKind
from inventory.models import DeliveryOption, Product, Shop

# SQLite only autoincrements an INTEGER PRIMARY KEY; INTEGER there is 64-bit.
_Id = BigInteger().with_variant(Integer, "sqlite")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_shops = Table(
    "shops",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("owner_id", _Id, nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("address", String(500), nullable=False),
    Column("phone", String(50), nullable=False),
    Column("latitude", Float, nullable=False),
    Column("longitude", Float, nullable=False),
    Column("open_hours", String(255), nullable=False),
    Column("delivery_option", String(30), nullable=False),
)

_products = Table(
    "products",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("shop_id", _Id, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("price", Float, nullable=False),
    Column("stock", Integer, nullable=False),
    Column("category", String(100)),
)

# Columns a product update may touch. shop_id is deliberately absent.
_PRODUCT_MUTABLE = {"name", "description", "price", "stock", "category"}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InventoryStore:
    """Repository for Shop and Product entities.

    Usage:
        store = InventoryStore()                               # settings.database_url
        store = InventoryStore("postgresql://user:pw@host/db") # explicit URL
        shop_id = store.create_shop(shop)
        with store.transaction() as conn:
            shops = store.find_shops([1, 2], conn=conn, for_update=True)
            store.delete_shops([s.id for s in shops], conn=conn)
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = create_store_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside one transaction; commit on success, roll back on error."""
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def _use(self, conn: Optional[Connection]) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with self.engine.connect() as own:
            yield own
            own.commit()

    # ------------------------------------------------------------------
    # Shops
    # ------------------------------------------------------------------

    def create_shop(self, shop: Shop, conn: Optional[Connection] = None) -> int:
        """Insert a new shop and return its assigned database ID."""
        with self._use(conn) as c:
            result = c.execute(
                _shops.insert().values(
                    owner_id=shop.owner_id,
                    name=shop.name,
                    address=shop.address,
                    phone=shop.phone,
                    latitude=shop.latitude,
                    longitude=shop.longitude,
                    open_hours=shop.open_hours,
                    delivery_option=shop.delivery_option.value,
                )
            )
            return result.inserted_primary_key[0]

    def get_shop(self, shop_id: int, conn: Optional[Connection] = None) -> Lookup[Shop]:
        with self._use(conn) as c:
            row = c.execute(_shops.select().where(_shops.c.id == shop_id)).fetchone()
        if row is None:
            return NotFound(ResourceKind.SHOP, shop_id)
        return Found(_row_to_shop(row))

    def list_shops(self) -> list[Shop]:
        """Return every shop ordered by id. Admin-only at the route layer."""
        with self.engine.connect() as conn:
            rows = conn.execute(_shops.select().order_by(_shops.c.id)).fetchall()
        return [_row_to_shop(r) for r in rows]

    def list_shops_by_owner(self, owner_id: int) -> list[Shop]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                _shops.select().where(_shops.c.owner_id == owner_id).order_by(_shops.c.id)
            ).fetchall()
        return [_row_to_shop(r) for r in rows]

    def count_shops_by_owner(self, owner_id: int) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_shops).where(_shops.c.owner_id == owner_id)
            ).scalar()
        return result or 0

    def find_shops(
        self,
        shop_ids: Iterable[int],
        conn: Optional[Connection] = None,
        for_update: bool = False,
    ) -> list[Shop]:
        """Fetch all shops whose id is in shop_ids with one query. Missing ids are simply absent.

        for_update=True locks the rows on backends that support SELECT ... FOR
        UPDATE; SQLite ignores it and relies on the surrounding transaction.
        """
        stmt = _shops.select().where(_shops.c.id.in_(list(shop_ids)))
        if for_update:
            stmt = stmt.with_for_update()
        with self._use(conn) as c:
            rows = c.execute(stmt).fetchall()
        return [_row_to_shop(r) for r in rows]

    def shop_owner(self, shop_id: int, conn: Optional[Connection] = None) -> int | NotFound:
        with self._use(conn) as c:
            owner_id = c.execute(select(_shops.c.owner_id).where(_shops.c.id == shop_id)).scalar()
        if owner_id is None:
            return NotFound(ResourceKind.SHOP, shop_id)
        return owner_id

    def delete_shops(self, shop_ids: Iterable[int], conn: Optional[Connection] = None) -> int:
        """Delete the given shops and all of their products. Returns the number of shops removed.

        Products go first so the statement order is valid with or without
        ON DELETE CASCADE enforcement.
        """
        ids = list(shop_ids)
        if not ids:
            return 0
        with self._use(conn) as c:
            c.execute(_products.delete().where(_products.c.shop_id.in_(ids)))
            result = c.execute(_shops.delete().where(_shops.c.id.in_(ids)))
        return result.rowcount

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def create_product(self, product: Product, conn: Optional[Connection] = None) -> int:
        """Insert a product and return its ID.

        Raises sqlalchemy.exc.IntegrityError if shop_id does not reference an
        existing shop (foreign key).
        """
        with self._use(conn) as c:
            result = c.execute(
                _products.insert().values(
                    shop_id=product.shop_id,
                    name=product.name,
                    description=product.description,
                    price=product.price,
                    stock=product.stock,
                    category=product.category,
                )
            )
            return result.inserted_primary_key[0]

    def get_product(self, product_id: int, conn: Optional[Connection] = None) -> Lookup[Product]:
        with self._use(conn) as c:
            row = c.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        if row is None:
            return NotFound(ResourceKind.PRODUCT, product_id)
        return Found(_row_to_product(row))

    def list_products(self, shop_id: int) -> list[Product]:
        """Return the products of one shop ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _products.select().where(_products.c.shop_id == shop_id).order_by(_products.c.id)
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def update_product(self, product_id: int, conn: Optional[Connection] = None, **fields) -> bool:
        """Update mutable fields on a product.

        Accepted fields: name, description, price, stock, category. Anything
        else (shop_id in particular) raises ValueError.

        Returns True if a row was updated, False if product_id was not found.
        """
        unknown = set(fields) - _PRODUCT_MUTABLE
        if unknown:
            raise ValueError(f"Immutable or unknown product fields: {sorted(unknown)!r}")
        if not fields:
            return isinstance(self.get_product(product_id, conn=conn), Found)
        with self._use(conn) as c:
            result = c.execute(_products.update().where(_products.c.id == product_id).values(**fields))
        return result.rowcount > 0

    def product_owner(self, product_id: int, conn: Optional[Connection] = None) -> int | NotFound:
        """Resolve product -> shop -> owner_id with one joined query."""
        stmt = (
            select(_shops.c.owner_id)
            .select_from(_products.join(_shops, _products.c.shop_id == _shops.c.id))
            .where(_products.c.id == product_id)
        )
        with self._use(conn) as c:
            owner_id = c.execute(stmt).scalar()
        if owner_id is None:
            return NotFound(ResourceKind.PRODUCT, product_id)
        return owner_id

    def find_products_with_owner(
        self,
        product_ids: Iterable[int],
        conn: Optional[Connection] = None,
        for_update: bool = False,
    ) -> list[tuple[Product, int]]:
        """Fetch products and their effective owner (parent shop's owner_id) in one joined query."""
        stmt = (
            select(_products, _shops.c.owner_id.label("shop_owner_id"))
            .select_from(_products.join(_shops, _products.c.shop_id == _shops.c.id))
            .where(_products.c.id.in_(list(product_ids)))
        )
        if for_update:
            stmt = stmt.with_for_update()
        with self._use(conn) as c:
            rows = c.execute(stmt).fetchall()
        return [(_row_to_product(r), r.shop_owner_id) for r in rows]

    def delete_products(self, product_ids: Iterable[int], conn: Optional[Connection] = None) -> int:
        """Delete the given products. Returns the number of rows removed."""
        ids = list(product_ids)
        if not ids:
            return 0
        with self._use(conn) as c:
            result = c.execute(_products.delete().where(_products.c.id.in_(ids)))
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_shop(row) -> Shop:
    return Shop(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        address=row.address,
        phone=row.phone,
        latitude=row.latitude,
        longitude=row.longitude,
        open_hours=row.open_hours,
        delivery_option=DeliveryOption(row.delivery_option),
    )


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        shop_id=row.shop_id,
        name=row.name,
        description=row.description,
        price=row.price,
        stock=row.stock,
        category=row.category,
    )

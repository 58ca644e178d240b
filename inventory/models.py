"""
inventory/models.py -- Domain dataclasses for shops and products.

Pure data containers. Ownership of a product is NOT stored here: it is the
owner_id of the parent shop, resolved on demand by inventory/ownership.py.

id is None before the record is written to the database.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DeliveryOption(str, Enum):
    NO_DELIVERY = "NO_DELIVERY"
    IN_HOUSE_DRIVER = "IN_HOUSE_DRIVER"
    THIRD_PARTY_PARTNER = "THIRD_PARTY_PARTNER"


@dataclass
class Shop:
    """A registered shop. owner_id never changes after creation."""

    owner_id: int
    name: str
    address: str
    phone: str
    latitude: float
    longitude: float
    open_hours: str
    delivery_option: DeliveryOption
    id: Optional[int] = None


@dataclass
class Product:
    """A product listed by a shop. shop_id never changes after creation."""

    shop_id: int
    name: str
    price: float
    stock: int
    description: Optional[str] = None
    category: Optional[str] = None
    id: Optional[int] = None

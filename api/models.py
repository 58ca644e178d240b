"""
API request and response models for Shopfront REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
inventory/models.py, which own the internal domain representation. Route
handlers map between the two.
"""

from typing import Annotated, Optional

from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field

from auth.models import USER_ID_MAX, Role, User
from inventory.models import DeliveryOption, Product, Shop

# Every id (user, shop, product) is a 64-bit signed integer. Out-of-range ids
# fail validation (400) instead of overflowing the database driver.
ResourceId = Annotated[int, Field(ge=1, le=USER_ID_MAX)]
PathId = Annotated[int, Path(ge=1, le=USER_ID_MAX)]

# Stock is stored in a signed 64-bit column.
STOCK_MAX = USER_ID_MAX

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=128)


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    username: str
    role: Role


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    role: Role


# ---------------------------------------------------------------------------
# Users (admin)
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=128)
    role: Role


class PasswordUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{id}/password."""

    new_password: str = Field(min_length=6, max_length=128)


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, role=user.role)


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------


class ShopCreate(BaseModel):
    """Request body for POST /api/v1/shops.

    owner_id is honoured only for ADMIN callers; shop owners always register
    shops for themselves.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=500)
    phone: str = Field(min_length=1, max_length=50)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    open_hours: str = Field(min_length=1, max_length=255)
    delivery_option: DeliveryOption
    owner_id: Optional[int] = Field(default=None, ge=1, le=USER_ID_MAX)


class ShopResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: int
    name: str
    address: str
    phone: str
    latitude: float
    longitude: float
    open_hours: str
    delivery_option: DeliveryOption

    @classmethod
    def from_shop(cls, shop: Shop) -> "ShopResponse":
        """Factory Method: the mapping lives next to the output model."""
        return cls(
            id=shop.id,
            owner_id=shop.owner_id,
            name=shop.name,
            address=shop.address,
            phone=shop.phone,
            latitude=shop.latitude,
            longitude=shop.longitude,
            open_hours=shop.open_hours,
            delivery_option=shop.delivery_option,
        )


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductRequest(BaseModel):
    """Request body for POST /shops/{shop_id}/products and PUT /products/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: int = Field(ge=0, le=STOCK_MAX)
    category: Optional[str] = Field(default=None, max_length=100)


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    shop_id: int
    name: str
    description: Optional[str]
    price: float
    stock: int
    category: Optional[str]

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            shop_id=product.shop_id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
            category=product.category,
        )

"""
core/models.py -- Shared lookup variants used across the auth and inventory layers.

Finder methods never raise for a missing row. They return Found(entity) or
NotFound(kind, resource_id) so callers keep "does not exist" and "exists but
belongs to someone else" as two separate outcomes.

Layer rule: no imports from api/, auth/, or inventory/.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ResourceKind(str, Enum):
    """Resource types that carry an ownership chain back to a user."""

    SHOP = "shop"
    PRODUCT = "product"


@dataclass(frozen=True)
class Found(Generic[T]):
    entity: T


@dataclass(frozen=True)
class NotFound:
    kind: ResourceKind
    resource_id: int

    @property
    def message(self) -> str:
        return f"{self.kind.value.capitalize()} not found with id: {self.resource_id}"


Lookup = Union[Found[T], NotFound]

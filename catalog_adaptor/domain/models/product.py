from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator


class AvailabilityStatus(str, Enum):
    """Stock states a vendor listing can be in."""
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class Price(BaseModel):
    """Monetary amount in an ISO-4217 currency."""

    amount: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)


class Availability(BaseModel):
    """Stock level and derived status."""

    stock: int = Field(default=0, ge=0)
    status: AvailabilityStatus = AvailabilityStatus.IN_STOCK


class Product(BaseModel):
    """
    Canonical product shape every adapter normalizes into.

    ``id`` always carries the owning adapter's source prefix so ids from
    different vendors never collide. ``metadata`` holds the raw vendor
    payload for audit and debugging only and is never parsed downstream.
    """

    id: str
    title: str = ""
    description: str = ""
    price: Price = Field(default_factory=Price)
    images: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    category: str = ""
    brand: str = ""
    source: str
    availability: Availability = Field(default_factory=Availability)
    specifications: Dict[str, str] = Field(default_factory=dict)
    metadata: Any = None

    def to_response(self) -> Dict[str, Any]:
        """Canonical JSON-ready dict."""
        return self.model_dump(mode="json")

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class Operation(str, Enum):
    """Adapter operation implied by a request context."""
    DETAILS = "details"
    CATEGORY = "category"
    SEARCH = "search"
    GENERAL = "general"


GENERAL_CATEGORY = "general"


class ResolveContext(BaseModel):
    """What the caller is asking for, and where they are asking from."""

    region: Optional[str] = None
    category: Optional[str] = None
    query: Optional[str] = None
    product_id: Optional[str] = None
    limit: int = Field(default=20, gt=0)
    offset: int = Field(default=0, ge=0)

    @field_validator("region")
    @classmethod
    def upper_region(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        return v or None

    @field_validator("category", "query", "product_id")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def operation(self) -> Operation:
        if self.product_id:
            return Operation.DETAILS
        if self.category:
            return Operation.CATEGORY
        if self.query:
            return Operation.SEARCH
        return Operation.GENERAL


class Resolution(BaseModel):
    """Outcome of one resolver pass."""

    result: Any = None
    source: Optional[str] = None
    candidates: List[str] = Field(default_factory=list)
    attempted: List[str] = Field(default_factory=list)
    fallback_used: bool = False

    @property
    def succeeded(self) -> bool:
        return bool(self.result)

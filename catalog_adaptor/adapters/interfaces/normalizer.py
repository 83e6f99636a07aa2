"""
Normalization of vendor payloads into the canonical Product/Category shape.

Vendors omit fields, send strings where numbers belong and nest values in
their own ways. A vendor normalizer only says where each canonical field
lives in its payload (``product_fields`` / ``category_fields``); the base
class coerces the values and substitutes the configured defaults for
anything missing, so field-level problems never become errors.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.domain.models.category import Category
from catalog_adaptor.domain.models.product import Availability, AvailabilityStatus, Price, Product

logger = get_logger(__name__)


class NormalizerDefaults(BaseModel):
    """Values substituted when a vendor omits a field."""

    rating: float = Field(default=4.5, ge=0, le=5)
    stock: int = Field(default=10, ge=0)
    currency: str = "USD"


def first(*values: Any) -> Any:
    """First value that is neither None nor an empty string/collection."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, (str, list, dict, tuple)) and not value:
            continue
        return value
    return None


def dig(data: Any, *path: Any) -> Any:
    """Follow keys/indexes into nested payloads, returning None on any miss."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, (list, tuple)) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        # "$1,299.99" and similar display strings
        value = "".join(ch for ch in value if ch.isdigit() or ch in ".-")
        if not value:
            return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def to_float(value: Any) -> Optional[float]:
    amount = to_decimal(value)
    return float(amount) if amount is not None else None


def to_int(value: Any) -> Optional[int]:
    amount = to_decimal(value)
    return int(amount) if amount is not None else None


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def to_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class Normalizer:
    """
    Base normalizer for one vendor.

    The default ``product_fields`` mapping understands the common shapes
    (``id``/``itemId``, ``title``/``name``, ``price`` as number or
    ``{value, currency}``...). Vendors with other shapes override it.
    """

    def __init__(self, source: str, defaults: Optional[NormalizerDefaults] = None):
        self.source = source
        self.defaults = defaults or NormalizerDefaults()

    @property
    def prefix(self) -> str:
        return f"{self.source}_"

    def prefixed(self, raw_id: Any) -> str:
        raw = to_str(raw_id)
        if raw.startswith(self.prefix):
            return raw
        return f"{self.prefix}{raw}"

    def product_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Pull canonical fields out of a vendor product payload.

        Returned keys: id, title, description, amount, currency, images,
        thumbnail, rating, category, brand, stock, status, specifications.
        Any key may be missing or None.
        """
        price = raw.get("price")
        image = raw.get("image")
        return {
            "id": first(raw.get("id"), raw.get("itemId")),
            "title": first(raw.get("title"), raw.get("name")),
            "description": first(raw.get("description"), raw.get("shortDescription")),
            "amount": dig(price, "value") if isinstance(price, Mapping) else price,
            "currency": dig(price, "currency") if isinstance(price, Mapping) else None,
            "images": first(raw.get("images"), as_list(image)),
            "thumbnail": first(raw.get("thumbnail"), image),
            "rating": first(raw.get("rating"), raw.get("averageRating")),
            "category": first(raw.get("category"), raw.get("categoryName")),
            "brand": first(raw.get("brand"), raw.get("brandName")),
            "stock": first(raw.get("stock"), raw.get("quantity")),
            "status": raw.get("availability"),
            "specifications": first(raw.get("specifications"), raw.get("specs")),
        }

    def category_fields(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        """Pull canonical fields out of a vendor category payload."""
        return {
            "id": first(raw.get("id"), raw.get("categoryId"), raw.get("slug")),
            "name": first(raw.get("name"), raw.get("categoryName")),
            "image": raw.get("image"),
            "description": raw.get("description"),
            "subcategories": raw.get("subcategories"),
        }

    def normalize_product(self, raw: Any) -> Optional[Product]:
        """
        Build a canonical Product, or None when the payload has no usable id.
        """
        if not isinstance(raw, Mapping):
            return None

        fields = self.product_fields(raw)
        raw_id = fields.get("id")
        if raw_id is None or to_str(raw_id) == "":
            logger.debug(f"Skipping {self.source} product without id")
            return None

        amount = to_decimal(fields.get("amount"))
        if amount is None or amount < 0:
            amount = Decimal("0")

        currency = to_str(fields.get("currency")).upper()
        if len(currency) != 3 or not currency.isalpha():
            currency = self.defaults.currency

        rating = to_float(fields.get("rating"))
        if rating is None:
            rating = self.defaults.rating
        rating = min(5.0, max(0.0, rating))

        stock = to_int(fields.get("stock"))
        if stock is None:
            stock = self.defaults.stock
        stock = max(0, stock)

        images = [to_str(url) for url in as_list(fields.get("images")) if to_str(url)]
        thumbnail = to_str(fields.get("thumbnail")) or (images[0] if images else None)

        specifications = fields.get("specifications")
        if isinstance(specifications, Mapping):
            specifications = {to_str(k): to_str(v) for k, v in specifications.items() if to_str(k)}
        else:
            specifications = {}

        try:
            return Product(
                id=self.prefixed(raw_id),
                title=to_str(fields.get("title")),
                description=to_str(fields.get("description")),
                price=Price(amount=amount, currency=currency),
                images=images,
                thumbnail=thumbnail,
                rating=rating,
                category=to_str(fields.get("category")),
                brand=to_str(fields.get("brand")),
                source=self.source,
                availability=Availability(
                    stock=stock,
                    status=self._status(fields.get("status"), stock)
                ),
                specifications=specifications,
                metadata=dict(raw),
            )
        except ValidationError as e:
            logger.warning(
                f"Dropping {self.source} product {raw_id}: {e.error_count()} invalid fields",
                extra={"data": {"source": self.source}}
            )
            return None

    def _status(self, declared: Any, stock: int) -> AvailabilityStatus:
        if to_str(declared).lower() == AvailabilityStatus.DISCONTINUED.value:
            return AvailabilityStatus.DISCONTINUED
        return AvailabilityStatus.IN_STOCK if stock > 0 else AvailabilityStatus.OUT_OF_STOCK

    def normalize_products(self, items: Iterable[Any]) -> List[Product]:
        products = []
        for item in items or []:
            product = self.normalize_product(item)
            if product is not None:
                products.append(product)
        return products

    def normalize_category(self, raw: Any, parent_id: Optional[str] = None) -> Optional[Category]:
        """
        Build a canonical Category (recursively for subcategories).

        Plain strings are accepted as slug-style ids.
        """
        if isinstance(raw, str):
            raw = {"id": raw, "name": raw.replace("-", " ").title()}
        if not isinstance(raw, Mapping):
            return None

        fields = self.category_fields(raw)
        raw_id = fields.get("id")
        if raw_id is None or to_str(raw_id) == "":
            return None

        category_id = self.prefixed(raw_id)
        name = to_str(fields.get("name")) or to_str(raw_id)
        children = []
        for child in as_list(fields.get("subcategories")):
            normalized = self.normalize_category(child, parent_id=category_id)
            if normalized is not None:
                children.append(normalized)

        try:
            return Category(
                id=category_id,
                name=name,
                image=to_str(fields.get("image")) or None,
                description=to_str(fields.get("description")) or f"{name} products",
                source=self.source,
                parent_id=parent_id,
                subcategories=children,
            )
        except ValidationError as e:
            logger.warning(
                f"Dropping {self.source} category {raw_id}: {str(e)}",
                extra={"data": {"source": self.source}}
            )
            return None

    def normalize_categories(self, items: Iterable[Any]) -> List[Category]:
        categories = []
        for item in items or []:
            category = self.normalize_category(item)
            if category is not None:
                categories.append(category)
        return categories

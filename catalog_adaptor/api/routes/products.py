from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query

from catalog_adaptor.api.dependencies import get_catalog_service
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.services.catalog_service import CatalogService, ProductFilters
from catalog_adaptor.services.relevance import SortOrder

router = APIRouter(prefix="/products", tags=["Products"])
logger = get_logger(__name__)


@router.get(
    "",
    summary="List products",
    description="Search by `query`, browse a `categoryId`, or list general products."
)
async def get_products(
    catalog: CatalogService = Depends(get_catalog_service),
    query: Optional[str] = Query(None, max_length=200),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    region: Optional[str] = Query(None, min_length=2, max_length=3),
    sort: Optional[SortOrder] = Query(None),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    brand: Optional[str] = Query(None),
) -> Dict[str, Any]:
    """Gets products from the store or the highest-priority vendor that has them."""
    page = await catalog.list_products(
        query=query,
        category_id=category_id,
        region=region,
        limit=limit,
        offset=offset,
        sort=sort,
        filters=ProductFilters(
            min_price=min_price,
            max_price=max_price,
            min_rating=min_rating,
            brand=brand
        )
    )
    return page.to_response()


@router.get(
    "/{product_id}",
    summary="Get product",
    description="Look up one product by its canonical, source-prefixed id."
)
async def get_product(
    product_id: str = Path(..., min_length=1),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    product = await catalog.get_product(product_id)
    return {"data": product.to_response()}

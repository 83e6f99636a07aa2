from typing import Any, Dict

from fastapi import APIRouter, Depends

from catalog_adaptor.api.dependencies import get_catalog_service
from catalog_adaptor.services.catalog_service import CatalogService

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", summary="List categories")
async def get_categories(
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    """Gets the category tree from the store, or merged from the free vendors."""
    categories = await catalog.get_categories()
    return {"data": [category.to_response() for category in categories]}

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from catalog_adaptor.api.dependencies import get_feature_flags
from catalog_adaptor.core.exceptions import ValidationException
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.services.feature_flags import FeatureFlags

router = APIRouter(prefix="/admin/feature-flags", tags=["Admin"])
logger = get_logger(__name__)


class FeatureFlagUpdate(BaseModel):
    enabled: bool


@router.get("", summary="List feature flags")
async def list_feature_flags(
    flags: FeatureFlags = Depends(get_feature_flags),
) -> Dict[str, Any]:
    """Current per-adapter flags; ``null`` means not configured (included)."""
    return {"data": flags.snapshot()}


@router.put("/{name}", summary="Toggle an adapter at runtime")
async def update_feature_flag(
    body: FeatureFlagUpdate,
    name: str = Path(..., pattern=r"^[A-Za-z0-9_-]+$"),
    flags: FeatureFlags = Depends(get_feature_flags),
) -> Dict[str, Any]:
    try:
        flags.update(name, body.enabled)
    except ValueError as e:
        raise ValidationException(str(e), field="enabled") from e
    logger.info(f"Feature flag {name.lower()} updated", extra={"data": {"enabled": body.enabled}})
    return {"data": {"name": name.lower(), "enabled": flags.is_enabled(name)}}

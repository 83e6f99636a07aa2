from fastapi import HTTPException, Request, status

from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.services.catalog_service import CatalogService
from catalog_adaptor.services.container import ServiceContainer
from catalog_adaptor.services.feature_flags import FeatureFlags

# Initialize logger
logger = get_logger(__name__)


async def get_container(request: Request) -> ServiceContainer:
    """
    Dependency for providing the service container.

    The container is created and connected by the application lifespan and
    kept on ``app.state``.

    Raises:
        HTTPException: 503 if the service has not finished starting
    """
    container = getattr(request.app.state, "container", None)
    if container is None or not container.connected:
        logger.warning("Request received before the service container was connected")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up"
        )
    return container


async def get_catalog_service(request: Request) -> CatalogService:
    container = await get_container(request)
    return container.catalog


async def get_feature_flags(request: Request) -> FeatureFlags:
    container = await get_container(request)
    return container.feature_flags

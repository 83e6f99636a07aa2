from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from catalog_adaptor import __version__
from catalog_adaptor.api.dependencies import get_container
from catalog_adaptor.core.logging import get_logger
from catalog_adaptor.services.container import ServiceContainer

# Initialize router and logger
health_router = APIRouter()
logger = get_logger(__name__)


class HealthStatus(BaseModel):
    """Basic health status response model."""
    status: str
    version: str = __version__
    service: str = "Catalog Adaptor Service"


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str
    details: Optional[Dict[str, Any]] = None


class DetailedHealthStatus(HealthStatus):
    """Detailed health status with dependency information."""
    dependencies: List[DependencyStatus]
    errors: Dict[str, Any] = {}


@health_router.get(
    "",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns basic health status of the service."
)
async def get_health() -> HealthStatus:
    logger.debug("Health check requested")
    return HealthStatus(status="ok")


@health_router.get(
    "/detailed",
    response_model=DetailedHealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
    description="Returns cache tier state, configured adapters and failure counters."
)
async def get_detailed_health(
    container: ServiceContainer = Depends(get_container),
) -> DetailedHealthStatus:
    """
    Detailed health check endpoint with dependency status.

    The service reports ``degraded`` while the shared cache tier is down;
    it keeps serving from the local tier in that state.
    """
    logger.debug("Detailed health check requested")
    health = await container.health()

    cache = health["cache"]
    shared_ok = cache.get("shared_available", True) or not cache.get("shared_configured", False)
    dependencies = [
        DependencyStatus(name="cache", status="ok" if shared_ok else "degraded", details=cache)
    ]
    for name, details in health["adapters"].items():
        dependencies.append(
            DependencyStatus(
                name=name,
                status="disabled" if details.get("enabled") is False else "ok",
                details=details
            )
        )

    return DetailedHealthStatus(
        status="ok" if shared_ok else "degraded",
        dependencies=dependencies,
        errors=health["errors"]
    )

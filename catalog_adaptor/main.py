import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from catalog_adaptor.api.error_handlers import register_exception_handlers
from catalog_adaptor.core.config import Settings, get_settings, load_env_file
from catalog_adaptor.core.logging import configure_logging, get_logger, set_correlation_id
from catalog_adaptor.services.container import ServiceContainer

# Load environment variables and configure logging early
load_env_file()
configure_logging()
logger = get_logger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        container: Pre-built service container (tests inject one with fakes)

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting up Catalog Adaptor Service")
        service_container = container or ServiceContainer(settings)
        await service_container.connect()
        app.state.container = service_container
        try:
            yield
        finally:
            logger.info("Shutting down Catalog Adaptor Service")
            await service_container.disconnect()
            app.state.container = None

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        debug=settings.DEBUG,
        lifespan=lifespan
    )

    configure_middleware(app, settings)
    register_exception_handlers(app)
    register_routers(app, settings)

    return app


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Configure middleware components for the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Application settings
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request tracking middleware
    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next: Callable):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {str(e)}",
                extra={"data": {
                    "request_path": request.url.path,
                    "method": request.method,
                    "process_time_ms": round(process_time * 1000, 2),
                }},
                exc_info=True
            )
            raise

        response.headers["X-Correlation-ID"] = correlation_id
        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            extra={"data": {
                "request_path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "process_time_ms": round(process_time * 1000, 2),
            }}
        )
        return response


def register_routers(app: FastAPI, settings: Settings) -> None:
    """
    Register API routers with the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Application settings
    """
    # Import routers here to avoid circular imports
    from catalog_adaptor.api.routes.categories import router as categories_router
    from catalog_adaptor.api.routes.feature_flags import router as feature_flags_router
    from catalog_adaptor.api.routes.health import health_router
    from catalog_adaptor.api.routes.products import router as products_router

    app.include_router(
        health_router,
        prefix=f"{settings.API_V1_STR}/health",
        tags=["Health"]
    )
    app.include_router(products_router, prefix=settings.API_V1_STR)
    app.include_router(categories_router, prefix=settings.API_V1_STR)
    app.include_router(feature_flags_router, prefix=settings.API_V1_STR)


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog_adaptor.main:app", host="0.0.0.0", port=8000, reload=True)

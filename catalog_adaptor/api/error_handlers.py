from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog_adaptor.core.exceptions import (
    APIException,
    IntegrationException,
    NotFoundError,
    RateLimitError,
    ValidationException,
)
from catalog_adaptor.core.logging import get_logger

# Initialize logger
logger = get_logger(__name__)

SENSITIVE_CONTEXT_KEYS = ("auth_token", "api_key", "access_token")


async def handle_api_exception(request: Request, exc: APIException) -> JSONResponse:
    """
    Handle APIException instances.

    Args:
        request: FastAPI request object
        exc: APIException instance

    Returns:
        JSONResponse: Formatted error response
    """
    logger.error(
        f"API Exception: {exc.detail}",
        extra={"data": {"status_code": exc.status_code, "error_code": exc.code, "context": exc.context}}
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_validation_exception(request: Request, exc: ValidationException) -> JSONResponse:
    logger.warning(
        f"Validation error: {exc.detail}",
        extra={"data": {"field": exc.context.get("field"), "path": request.url.path}}
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_not_found_exception(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info(
        f"Resource not found: {exc.detail}",
        extra={"data": {
            "resource_type": exc.context.get("resource_type"),
            "resource_id": exc.context.get("resource_id"),
        }}
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_rate_limit_exception(request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning(f"Rate limited: {exc.detail}", extra={"data": {"context": exc.context}})
    response = JSONResponse(status_code=exc.status_code, content=exc.to_dict())
    if exc.retry_after is not None:
        response.headers["Retry-After"] = str(exc.retry_after)
    return response


async def handle_integration_exception(request: Request, exc: IntegrationException) -> JSONResponse:
    """
    Handle upstream vendor errors.

    Credentials that ended up in the context are logged but redacted from
    the response body.
    """
    logger.error(
        f"Integration error: {exc.detail}",
        extra={"data": {"error_code": exc.code, "context": exc.context}}
    )

    safe_context = dict(exc.context)
    for key in SENSITIVE_CONTEXT_KEYS:
        if key in safe_context:
            safe_context[key] = "[REDACTED]"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.detail,
                "status_code": exc.status_code,
                "context": safe_context
            }
        }
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI request validation errors in the service's error shape."""
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "validation_error",
                "message": "Request validation error",
                "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
                "context": {"errors": errors}
            }
        }
    )


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
            }
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the service's exception handlers to the application."""
    app.add_exception_handler(ValidationException, handle_validation_exception)
    app.add_exception_handler(NotFoundError, handle_not_found_exception)
    app.add_exception_handler(RateLimitError, handle_rate_limit_exception)
    app.add_exception_handler(IntegrationException, handle_integration_exception)
    app.add_exception_handler(APIException, handle_api_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_exception)

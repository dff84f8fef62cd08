"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.dine.config import settings
from src.dine.exceptions import AppError, ValidationError
from src.dine.features.auth.handlers import router as auth_router
from src.dine.features.restaurants.handlers import router as restaurants_router
from src.dine.services.container import ServiceContainer, build_services
from src.dine.services.rate_limiter import limiter

logger = logging.getLogger(__name__)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an expected error as ``{message, issues?}`` with its status."""
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            exc_info=exc,
            extra={"error_type": type(exc).__name__},
        )
    else:
        logger.info(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"error_type": type(exc).__name__, "status_code": exc.status_code},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body/query validation failures are 400s with field-level issues."""
    error = ValidationError.from_errors(exc.errors())
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework HTTP errors (404 route, 405 method) in the same ``{message}`` shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected is logged in full and hidden from the client."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"error_type": "unhandled"},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        services: Prebuilt service graph. When omitted, the production graph is
            built from settings at startup.

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle (startup and shutdown)."""
        # Startup
        if services is None:
            try:
                app.state.services = build_services(settings)
            except Exception as e:
                logger.error(
                    f"Failed to build service graph: {e}",
                    exc_info=True,
                    extra={"error_type": "service_init_failed"},
                )
                raise

        yield

        # Shutdown
        try:
            await app.state.services.close()
            logger.info("Service cleanup completed")
        except Exception as e:
            logger.error(f"Error during service cleanup: {e}", exc_info=True)

    app = FastAPI(
        title="Restaurant Directory API",
        description="API for listing and managing restaurants",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    logger.info(f"Origins : {origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Content-Type"],
    )

    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(restaurants_router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check() -> HealthCheckResponse:
        """Health check endpoint."""
        return HealthCheckResponse(status="healthy")

    return app


app = create_app()

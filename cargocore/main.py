"""
FastAPI Production Application

Main entry point for the CargoCore 3PL operations dashboard API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from cargocore.config import Settings, get_settings
from cargocore.config.logging import configure_logging
from cargocore.errors import DashboardError
from cargocore.serving.api import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    error_response,
)
from cargocore.serving.api.routes import (
    ai_router,
    analytics_router,
    costs_router,
    dashboard_router,
    health_router,
    inventory_router,
    orders_router,
    warehouses_router,
)

logger = structlog.get_logger(__name__)

HTTP_ERRORS = {
    404: "Not found",
    405: "Method not allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(settings.monitoring)
    logger.info(
        "Starting CargoCore dashboard API",
        environment=settings.app_env,
        llm_enabled=settings.llm.enabled,
    )
    yield
    logger.info("Shutting down...")


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    logger.error(
        "Request failed",
        path=request.url.path,
        error=exc.error,
        message=exc.message,
    )
    return error_response(exc.status_code, exc.error, exc.message, exc.details)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error = HTTP_ERRORS.get(exc.status_code, str(exc.detail))
    response = error_response(exc.status_code, error, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info("Rejected invalid request", path=request.url.path, errors=len(details))
    return error_response(400, "Invalid request", "Missing or invalid request fields", details)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment when omitted

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="CargoCore Dashboard API",
        description="3PL operations dashboard: KPIs, anomalies and AI insights over live shipment data",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Custom middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)

    app.add_exception_handler(DashboardError, dashboard_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # API routes
    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])
    app.include_router(analytics_router, prefix="/api", tags=["Analytics"])
    app.include_router(costs_router, prefix="/api", tags=["Costs"])
    app.include_router(orders_router, prefix="/api", tags=["Orders"])
    app.include_router(warehouses_router, prefix="/api", tags=["Warehouses"])
    app.include_router(inventory_router, prefix="/api", tags=["Inventory"])
    app.include_router(ai_router, prefix="/api", tags=["AI"])

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with Uvicorn."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()

"""
FastAPI Application Factory

Creates and configures the reporting API: middleware, routers, error
mapping and the database handle lifecycle.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from reporting.analytics.errors import (
    AggregationUnavailableError,
    PricingUpdateError,
    ProductNotFoundError,
)
from reporting.config.logging import configure_logging
from reporting.config.settings import Settings, get_settings
from reporting.database.connection import Database
from reporting.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from reporting.serving.api.routes import (
    breakdowns_router,
    companies_router,
    contacts_router,
    customers_router,
    dashboard_router,
    health_router,
    inventory_router,
    orders_router,
    products_router,
    quality_router,
    reorder_router,
)

logger = structlog.get_logger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AggregationUnavailableError)
    async def aggregation_unavailable(request: Request, exc: AggregationUnavailableError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": "Aggregation unavailable", "report": exc.report},
        )

    @app.exception_handler(ProductNotFoundError)
    async def product_not_found(request: Request, exc: ProductNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Product not found"})

    @app.exception_handler(PricingUpdateError)
    async def pricing_update_failed(request: Request, exc: PricingUpdateError) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"detail": "Pricing update failed; no changes were saved"},
        )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to get_settings())
        database: Database handle to use; when omitted one is built from
            settings and owned by the app (connected and disposed by its
            lifespan)

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings=settings)
        logger.info("Starting reporting API", version=settings.version, environment=settings.app_env)

        owned = database is None
        app.state.database = database or Database.from_settings(settings.database)
        if owned:
            await app.state.database.connect()

        yield

        logger.info("Shutting down reporting API")
        if owned:
            await app.state.database.dispose()

    app = FastAPI(
        title="Sales Reporting API",
        description="Filtered, sorted and paginated sales reports with period-over-period comparison",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    if database is not None:
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "PUT"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    _register_error_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(customers_router, prefix="/api/v1/customers", tags=["Customers"])
    app.include_router(companies_router, prefix="/api/v1/companies", tags=["Companies"])
    app.include_router(contacts_router, prefix="/api/v1/contacts", tags=["Contacts"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(breakdowns_router, prefix="/api/v1/breakdowns", tags=["Breakdowns"])
    app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
    app.include_router(reorder_router, prefix="/api/v1/reorder-planning", tags=["Reorder Planning"])
    app.include_router(quality_router, prefix="/api/v1/quality", tags=["Quality"])

    return app

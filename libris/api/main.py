"""
Libris API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI, Request

from .schemas import HealthResponse
from .routes import (
    auth_router,
    users_router,
    books_router,
    categories_router,
    loans_router,
    reviews_router,
    favorites_router,
    analytics_router,
)
from .middleware import (
    setup_cors,
    setup_logging,
    setup_exception_handlers,
    LoggingConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    get_service_container,
    ServiceContainer,
    Settings,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup opens the database (creating tables and constraints) and
    builds the service container; shutdown disposes the engine.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting Libris in {settings.environment} mode")

    try:
        if getattr(app.state, "services", None) is None:
            app.state.services = ServiceContainer(settings)

        logger.info("Initializing database...")
        _ = app.state.services.database

        logger.info("Libris started successfully")

        yield

    finally:
        logger.info("Shutting down Libris...")
        services = getattr(app.state, "services", None)
        if services is not None:
            services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.
        services: Prebuilt service container (tests pass one bound to a
            scratch database). If None, one is built on startup.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Libris",
        description="Library circulation service: catalog, loans, reviews and favorites.",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
    )

    setup_exception_handlers(app)

    setup_cors(
        app,
        config=get_cors_config(settings.environment, settings.cors_allowed_origins),
    )

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api/v1"

    for router in (
        auth_router,
        users_router,
        books_router,
        categories_router,
        loans_router,
        reviews_router,
        favorites_router,
        analytics_router,
    ):
        app.include_router(router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Libris",
            "version": API_VERSION,
            "status": "running",
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request) -> HealthResponse:
        """
        Health check endpoint.

        Reports "degraded" when the database does not answer.
        """
        services = get_service_container(request)

        components = {}
        if services.database.ping():
            components["database"] = "healthy"
        else:
            components["database"] = "unhealthy"

        return HealthResponse(
            status="healthy" if components["database"] == "healthy" else "degraded",
            version=API_VERSION,
            components=components,
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "libris.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        workers=1 if settings.debug else 4,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()

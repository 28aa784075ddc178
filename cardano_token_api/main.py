"""
FastAPI application main entry point.
Serves Cardano token prices, market caps, trust scores and 24h volume.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from cardano_token_api.core.config import settings
from cardano_token_api.core.logging_setup import setup_logging
from cardano_token_api.services.container import ServiceContainer, build_services

# Import V1 API router
from cardano_token_api.api.v1.api import api_router as api_v1_router

logger = logging.getLogger(__name__)


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the application; tests pass a prebuilt service container."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_json)
        container = services or build_services(settings)
        app.state.services = container
        logger.info(
            "Starting %s v%s (storage: %s)",
            settings.app_name, settings.app_version, container.config.storage_backend.value
        )
        container.scheduler.start()
        try:
            yield
        finally:
            await container.scheduler.stop()
            logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Prices, market caps, trust scores and trading volume for Cardano native tokens.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # CORS middleware (adjust origins for production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include V1 API routes
    app.include_router(api_v1_router, prefix="/v1")

    @app.get("/")
    async def root():
        """API info."""
        return {
            "status": "operational",
            "service": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "tokens": "GET /v1/tokens",
                "top": "GET /v1/tokens/top?limit=50",
                "token": "GET /v1/tokens/{token_id}",
                "refresh": "POST /v1/refresh",
                "status": "GET /v1/status"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy", "service": settings.app_name}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

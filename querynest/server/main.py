"""
Main FastAPI application creation and configuration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..config import configure_logging, get_settings
from .api.dependencies import get_container, set_container
from .api.router import get_api_router
from .service_container import ServiceConfig, ServiceContainer

# Global container instance
container = ServiceContainer(ServiceConfig.from_settings(get_settings()))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    configure_logging(level=settings.log_level)
    await container.initialize()
    set_container(container)
    yield
    await container.cleanup()


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="QueryNest API",
        description="Chat over your own documents",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        container = get_container()
        return {
            "status": "healthy",
            "version": __version__,
            "database": container.db_pool is not None,
            "search": bool(
                container.search_client and container.search_client.is_configured
            ),
            "model": bool(container.model_client and container.model_client.api_key),
        }

    app.include_router(get_api_router())

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "querynest.server.main:create_app",
        host=settings.host,
        port=settings.port,
        factory=True,
    )

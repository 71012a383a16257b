"""Main FastAPI application"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from storefront.core.config import Settings, get_settings
from storefront.core.database import Database
from storefront.core.exceptions import register_exception_handlers
from storefront.services.notification import NotificationService
from storefront.api.v1 import api_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    notifier: Optional[NotificationService] = None
) -> FastAPI:
    """
    Build the application

    The database and notifier live on app.state and are opened and
    closed by the lifespan.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        # Startup
        logger.info(f"Starting up {settings.APP_NAME}...")
        app.state.database.connect()
        await app.state.database.create_all()

        yield

        # Shutdown
        logger.info(f"Shutting down {settings.APP_NAME}...")
        await app.state.notifier.drain()
        await app.state.database.disconnect()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Storefront cart and checkout API",
        version=settings.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database or Database(settings)
    app.state.notifier = notifier or NotificationService()

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router, prefix="/api/v1")

    # Health check
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.APP_VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )

"""
ShopDesk API - Main Application Entry Point.

Local backend for the import shop desktop app: ledger operations, backups
and the document store remote clients sync against.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopdesk.core.config import settings
from shopdesk.core.database import close_db, init_db
from shopdesk.core.logging import LoggerContextMiddleware, configure_logging, get_logger
from shopdesk.middleware import ErrorHandlerMiddleware
from shopdesk.repositories import CollectionRepository, SqlCollectionRepository
from shopdesk.routers import backup_router, collections_router, health_router, ledger_router
from shopdesk.services.store import ShopStore

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


def create_app(repository: Optional[CollectionRepository] = None) -> FastAPI:
    """
    Application factory function.

    Without a repository the app opens the SQL document store configured by
    ``DATABASE_URL``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "Starting application",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment,
        )

        owns_database = repository is None
        if owns_database:
            await init_db()
        store = ShopStore(repository or SqlCollectionRepository())
        await store.load()
        app.state.store = store

        yield

        logger.info("Shutting down application")
        if owns_database:
            await close_db()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Import shop ledger API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - last added = outermost)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggerContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    app.include_router(health_router)
    app.include_router(ledger_router, prefix="/api")
    app.include_router(backup_router, prefix="/api")
    app.include_router(collections_router, prefix="/api")

    logger.info(
        "Application created",
        routes=len(app.routes),
        cors_origins=len(settings.allowed_origins),
    )

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shopdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

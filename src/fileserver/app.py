"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from fileserver.config import Settings
from fileserver.files import FileServer, FileServerSpec, FileSystem, select_guard
from fileserver.middleware.logging import RequestLoggingMiddleware
from fileserver.routes import files, health

logger = structlog.get_logger()


def file_server_spec(settings: Settings) -> FileServerSpec:
    """Build the file server configuration from environment settings.

    Args:
        settings: Loaded application settings.

    Returns:
        File server configuration.
    """
    return FileServerSpec(
        root=settings.root,
        hide=tuple(settings.hide),
        index_names=tuple(settings.index_names),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log application startup and shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    file_server: FileServer = app.state.file_server
    logger.info(
        "fileserver_startup",
        host=settings.host,
        port=settings.port,
        root=file_server.spec.root or ".",
        index_names=list(file_server.spec.index_names),
        guard=type(file_server.guard).__name__,
    )
    try:
        yield
    finally:
        logger.info("fileserver_shutdown")


def create_app(settings: Settings | None = None, fs: FileSystem | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        fs: Filesystem to serve from. Uses the local disk if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="fileserver",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/_docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/_openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.file_server = FileServer(
        file_server_spec(settings),
        fs=fs,
        guard=select_guard(settings.name_guard),
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router)
    app.include_router(files.router)

    return app

"""
StreamPanel Main Application

FastAPI application entry point for the IPTV middleware emulation layer.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from streampanel import __version__
from streampanel.config import get_config, load_config
from streampanel.database import close_db, init_db

# Logger
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Loads configuration and opens the catalog database on startup; disposes
    of the engine on shutdown.
    """
    logger.info(f"Starting StreamPanel v{__version__}")

    config = load_config()
    logger.info(f"Configuration loaded, server port: {config.server.port}")

    init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down StreamPanel...")
    try:
        close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("StreamPanel shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="StreamPanel",
        description="IPTV middleware emulating Xtream Codes, Stalker portal and M3U clients",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    from streampanel.middleware import CORSMiddleware
    app.add_middleware(CORSMiddleware)

    from streampanel.api import (
        health_router,
        import_router,
        playback_router,
        playlist_router,
        proxy_router,
    )
    from streampanel.stalker import stalker_router
    from streampanel.xtream import xtream_router

    app.include_router(health_router)
    app.include_router(xtream_router)
    app.include_router(playlist_router)
    app.include_router(playback_router)
    app.include_router(proxy_router)
    app.include_router(import_router)
    # Catch-all ``/{...}/{type}.php`` route, registered last
    app.include_router(stalker_router)

    @app.get("/version")
    async def version_info() -> dict:
        """Version information endpoint."""
        return {
            "version": __version__,
            "app": "StreamPanel",
            "server_name": get_config().panel.server_name,
        }

    return app


def main() -> None:
    """
    Main entry point for running the server.

    Called when running `python -m streampanel` or via the CLI.
    """
    import uvicorn
    from streampanel.utils.logging_setup import parse_size, setup_logging

    config = load_config()

    setup_logging(
        log_level=config.logging.level,
        log_file_name=config.logging.file,
        log_to_console=True,
        log_to_file=True,
        max_bytes=parse_size(config.logging.max_size),
        backup_count=config.logging.backup_count,
        log_format=config.logging.format,
    )

    logger.info(f"Starting StreamPanel v{__version__}")

    uvicorn.run(
        "streampanel.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
        log_level=config.server.log_level.lower(),
    )


app = create_app()

if __name__ == "__main__":
    main()

"""
Main application entry point for the Adaptive Learning Engine API.

Usage:
    - Direct: python -m adaptive_learning.main
    - ASGI server: uvicorn adaptive_learning.main:create_app --factory
"""

import datetime
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adaptive_learning.api.dependencies import OrchestratorRegistry
from adaptive_learning.api.handlers import register_exception_handlers
from adaptive_learning.api.router import router
from adaptive_learning.common.logger import app_logger, configure_logger, APP_LOGGER_NAME
from adaptive_learning.config import AppConfig, get_config
from adaptive_learning.storage import create_store
from adaptive_learning.storage.base import KeyValueStore

# Setup module logger
logger = app_logger.getChild("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared store when the application shuts down."""
    logger.info("Application startup complete")
    yield
    await app.state.registry.close()
    logger.info("Application shutdown complete")


def create_app(config: Optional[AppConfig] = None,
               store: Optional[KeyValueStore] = None,
               clock: Optional[Callable[[], datetime.datetime]] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        config: Application configuration; the global one when omitted
        store: Key-value backend; built from the storage config when omitted
        clock: Callable returning the current time

    Returns:
        Configured FastAPI application
    """
    config = config or get_config()
    configure_logger(
        name=APP_LOGGER_NAME,
        level=config.logging.level,
        use_json=config.logging.use_json,
        log_file=config.logging.file_path,
    )

    app = FastAPI(
        title=config.app_name,
        description="Adaptive learning personalization engine",
        version=config.version,
        debug=config.api.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.registry = OrchestratorRegistry(store or create_store(config.storage), config, clock)

    app.include_router(router, prefix=config.api.prefix)
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"Welcome to the {config.app_name} API", "version": config.version}

    logger.info(f"Application created with {len(app.routes)} routes ({config.environment.env})")
    return app


# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    settings = get_config()
    logger.info(f"Starting server on {settings.api.host}:{settings.api.port} (reload: {settings.api.reload})")

    uvicorn.run(
        "adaptive_learning.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
        log_level=settings.logging.level.lower(),
    )

"""
FastAPI application with assembled routers.

Initializes the FastAPI app, creates the schema, starts the ingestion
scheduler for the lifetime of the app and configures the uvicorn server.

Dependencies: fastapi, uvicorn, pagewise.api.routers, pagewise.boundary.db, pagewise.observability
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pagewise.api.deps import get_service_container
from pagewise.boundary.db import dispose_engine, init_models
from pagewise.configs import get_settings
from pagewise.observability.logger import configure_logging
from pagewise.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import chat_router, concepts_router, documents_router, health_router, jobs_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup: logging, schema, scheduler (recovers jobs left running).
    Shutdown: scheduler stop, engine disposal.
    """
    settings = get_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level)

    await init_models()
    container = get_service_container()
    scheduler = container.scheduler
    await scheduler.start()
    logger.info(f"{__name__}:lifespan - PageWise started ({settings.environment})")

    yield

    await scheduler.stop()
    container.clear()
    await dispose_engine()
    logger.info(f"{__name__}:lifespan - PageWise stopped")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        use_lifespan: Run startup/shutdown hooks (disabled by tests that inject services)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="PageWise API",
        description="Document ingestion and retrieval-augmented Q&A over PDFs",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    for router in (health_router, documents_router, jobs_router, concepts_router, chat_router):
        app.include_router(router, prefix=API_PREFIX)

    return app


app = create_app()


if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run("pagewise.api.main:app", host=_settings.host, port=_settings.port)

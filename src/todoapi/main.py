"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (tables in development,
engine disposal on exit). Middleware, CORS, exception handlers and
routers are all registered here; each concern lives in its own module.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todoapi import __version__
from todoapi.api import api_router
from todoapi.api.errors import router as error_router
from todoapi.config import settings
from todoapi.errors import register_exception_handlers
from todoapi.logging_config import setup_logging

setup_logging(level=settings.log_level, json_logs=settings.json_logs)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    logger.info(
        "todoapi.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from todoapi.db.engine import engine, init_models

    if settings.create_tables_on_startup:
        await init_models()
        logger.info("todoapi.tables_ready")

    yield

    logger.info("todoapi.shutdown")
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Todo API",
        description="Per-user todo lists behind bearer-token authentication",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → RequestLogging → handler

    from todoapi.middleware.request_id import RequestIdMiddleware
    from todoapi.middleware.request_logging import RequestLoggingMiddleware
    from todoapi.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    # Mount API routes
    app.include_router(api_router)
    app.include_router(error_router)

    return app


# Default app instance (used by uvicorn: todoapi.main:app)
app = create_app()

"""ASGI entry point for the curation and ordering API."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from taskcurator.api import router as api_router
from taskcurator.api.v1.health import probe_router
from taskcurator.config import Settings, get_settings
from taskcurator.db.session import close_db, init_db
from taskcurator.middleware import LoggingMiddleware, RequestIDMiddleware

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    version = app.version
    logger.info("taskcurator_starting", version=version)
    await init_db()
    try:
        yield
    finally:
        await close_db()
        logger.info("taskcurator_stopped", version=version)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Daily task curation and list ordering",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Middleware runs in reverse order of registration, so the request id
    # is assigned before LoggingMiddleware binds it.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(probe_router)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()

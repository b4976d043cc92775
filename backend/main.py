"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TextIO

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.api.health import router as health_router
from backend.api.sync import router as sync_router
from backend.config import Settings
from backend.database import create_engine, create_service_tables
from backend.datastore import DataStore
from backend.exceptions import ChangeListError
from backend.services.cache_service import ChangeCache, db_change_source, file_change_source
from backend.services.sync_service import PostSyncHook, Synchronizer
from backend.version import VERSION

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


def configure_logging(debug: bool, stream: TextIO | None = None) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=stream or sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)


def build_synchronizer(
    settings: Settings,
    store: DataStore,
    cache: ChangeCache,
    post_sync_hook: PostSyncHook | None = None,
) -> Synchronizer:
    """Wire a synchronizer from settings and its collaborators."""
    return Synchronizer(
        staging_root=settings.resolved_staging_root,
        production_root=settings.production_root,
        store=store,
        file_changes=file_change_source(settings.file_changes_path, cache),
        db_changes=db_change_source(settings.db_changes_path, cache),
        cache=cache,
        staging_prefix=settings.staging_prefix,
        production_prefix=settings.production_prefix,
        post_sync_hook=post_sync_hook,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    settings.validate_runtime_security()
    configure_logging(settings.debug)
    logger.info("Starting Staging2Live (debug=%s)", settings.debug)

    try:
        engine, session_factory = create_engine(settings)
        app.state.engine = engine
        app.state.session_factory = session_factory
    except Exception as exc:
        logger.critical(
            "Failed to initialize database: %s. Check database path and permissions.", exc
        )
        raise

    try:
        await create_service_tables(engine)
    except Exception as exc:
        logger.critical("Failed to create database schema: %s.", exc)
        raise

    app.state.change_cache = ChangeCache()
    app.state.synchronizer = build_synchronizer(
        settings,
        DataStore(engine),
        app.state.change_cache,
        getattr(app.state, "post_sync_hook", None),
    )

    yield

    try:
        await engine.dispose()
    except Exception as exc:
        logger.error("Error during engine disposal: %s", exc, exc_info=True)

    logger.info("Staging2Live stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Routes are registered here, never as a side effect of constructing the
    synchronizer.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Staging2Live",
        description="Push staging files and database rows to production",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings

    app.include_router(health_router)
    app.include_router(sync_router)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = []
        for err in exc.errors():
            loc = err.get("loc", ())
            field = str(loc[-1]) if loc else "unknown"
            errors.append({"field": field, "message": err.get("msg", "Invalid value")})
        logger.warning(
            "RequestValidationError in %s %s: %s",
            request.method,
            request.url.path,
            errors,
        )
        return JSONResponse(status_code=422, content={"detail": errors})

    @app.exception_handler(ChangeListError)
    async def change_list_error_handler(request: Request, exc: ChangeListError) -> JSONResponse:
        logger.error("ChangeListError in %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


app = create_app()


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )

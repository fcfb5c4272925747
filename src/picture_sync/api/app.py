"""FastAPI application factory."""
from __future__ import annotations
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog
from ..config import Settings
from ..storage.database import init_db, close_db, create_tables
from ..storage.factory import build_object_store, build_recorder
from ..storage.metadata import MetadataRecorder, SqlMetadataRecorder
from ..storage.object_store import ObjectStore
from ..utils.logging import setup_logging
from .middleware import RequestLoggingMiddleware
from .routes import files, health, pictures, save, upload

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    object_store: ObjectStore | None = None,
    recorder: MetadataRecorder | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    *object_store* and *recorder* default to the backends named in
    *settings*.
    """
    if settings is None:
        settings = Settings()

    setup_logging(settings.log_level)

    if object_store is None:
        object_store = build_object_store(settings)
    if recorder is None:
        recorder = build_recorder(settings)
    uses_sql = isinstance(recorder, SqlMetadataRecorder)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if uses_sql:
            init_db(settings.database_url.get_secret_value())
            if settings.create_tables:
                await create_tables()
        logger.info("api_started", storage_backend=type(object_store).__name__,
                    recorder_backend=type(recorder).__name__)
        yield
        # Shutdown
        await recorder.close()
        if uses_sql:
            await close_db()

    app = FastAPI(
        title="Picture Sync API",
        description="Content-addressed picture upload and metadata API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.object_store = object_store
    app.state.recorder = recorder

    # Register routes
    app.include_router(health.router, tags=["health"])
    app.include_router(upload.router, tags=["upload"])
    app.include_router(save.router, tags=["save"])
    app.include_router(pictures.router, tags=["pictures"])
    app.include_router(files.router, tags=["files"])

    return app

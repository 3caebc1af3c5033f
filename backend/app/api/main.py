"""Entry point for the FastAPI application.

``create_app`` builds the application from one ``Settings`` instance:
it constructs the database, image store and reading extractor, stores
them on ``app.state``, registers the routers and the exception
handlers, and initialises the database and image store on startup.
No tables or directories are created before that.  When run with uvicorn
the module-level ``app`` is used::

    uvicorn app.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from app.api.endpoints.health import router as health_router
from app.api.error_handlers import register_exception_handlers
from app.api.routes.images import router as images_router
from app.api.routes.measures import router as measures_router
from app.core.config import Settings, get_settings, require_extraction_credentials
from app.core.database import Database
from app.core.observability import init_sentry
from app.services.extraction_service import OpenAIReadingExtractor
from app.services.storage_service import ImageStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    require_extraction_credentials(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle."""
        logger.info("Starting up...")
        if init_sentry(settings, "api"):
            logger.info("Sentry SDK initialized (api)")
        await app.state.database.init_db()
        await run_in_threadpool(app.state.image_store.prepare)
        yield
        logger.info("Shutting down...")
        await app.state.database.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.image_store = ImageStore(settings)
    app.state.reading_extractor = OpenAIReadingExtractor(settings)

    # In development allow all origins; otherwise only the configured ones.
    allow_origins = ["*"] if settings.is_development else list(settings.BACKEND_CORS_ORIGINS or [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=not settings.is_development,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Measures before images so "/images/list" lists the customer "images";
    # generated image names never equal "list".
    app.include_router(health_router)
    app.include_router(measures_router)
    app.include_router(images_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"Welcome to the {settings.PROJECT_NAME}"}

    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    _settings = get_settings()
    uvicorn.run("app.api.main:app", host=_settings.HOST, port=_settings.PORT)

"""Common dependencies for FastAPI routes.

Long-lived collaborators (settings, database, image store, reading
extractor) are built once in ``app.api.main.create_app`` and kept on
``app.state``; the helpers below hand them to route handlers.  Tests
swap any of them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.database import Database
from app.services.extraction_service import ReadingExtractor
from app.services.measure_repository import MeasureRepository
from app.services.measure_service import MeasureService
from app.services.storage_service import ImageStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db_session(database: Database = Depends(get_database)) -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped database session."""
    async for session in database.session():
        yield session


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_reading_extractor(request: Request) -> ReadingExtractor:
    return request.app.state.reading_extractor


async def get_measure_service(
    db: AsyncSession = Depends(get_db_session),
    extractor: ReadingExtractor = Depends(get_reading_extractor),
    image_store: ImageStore = Depends(get_image_store),
) -> MeasureService:
    """Get a measure service bound to this request's session."""
    return MeasureService(MeasureRepository(db), extractor, image_store)

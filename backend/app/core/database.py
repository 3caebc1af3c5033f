"""Database configuration and session management.

This module constructs an asynchronous SQLAlchemy engine and session
factory for the application from the ``DATABASE_URL`` setting.  Plain
``sqlite`` URLs are upgraded to the ``aiosqlite`` driver and the
PostgreSQL variants are normalised to ``psycopg`` so that the same
connection string works for the API and for ad-hoc scripts.

The ``Database`` object is created once per application (see
``app.api.main.create_app``) and stored on ``app.state``; request
handlers obtain a session through ``app.api.dependencies.get_db_session``.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Declarative base
Base = declarative_base()


def normalise_database_url(db_url: str) -> str:
    """Return ``db_url`` rewritten to use an async driver.

    - ``sqlite`` becomes ``sqlite+aiosqlite``.
    - ``postgres``/``postgresql``/``postgresql+psycopg2``/``postgresql+asyncpg``
      become ``postgresql+psycopg``.

    Other URLs are returned unchanged.
    """
    url_obj = make_url(db_url)
    driver = url_obj.drivername or ""
    if driver == "sqlite":
        url_obj = url_obj.set(drivername="sqlite+aiosqlite")
    elif driver in {"postgresql", "postgres", "postgresql+psycopg2", "postgresql+asyncpg"}:
        url_obj = url_obj.set(drivername="postgresql+psycopg")
    return url_obj.render_as_string(hide_password=False)


class Database:
    """Async engine plus session factory bound to one ``Settings`` instance."""

    def __init__(self, settings: Settings) -> None:
        self.url = normalise_database_url(settings.DATABASE_URL)
        engine_kwargs: dict[str, Any] = dict(echo=False, pool_pre_ping=True)
        self.engine = create_async_engine(self.url, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        logger.info("Created async engine for %s", make_url(self.url).render_as_string(hide_password=True))

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session scoped to one request.

        Intended for FastAPI dependency injection; the session is closed
        after use.
        """
        async with self.sessionmaker() as session:
            try:
                yield session
            finally:
                await session.close()

    async def init_db(self) -> None:
        """Create all tables declared on ``Base``.

        Schema migrations are handled outside the service; this helper is
        used for development, tests and first start.
        """
        async with self.engine.begin() as conn:
            # Import all models to ensure metadata is populated
            from app.models import tables  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run a trivial statement; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()

    def debug_info(self) -> Dict[str, Any]:
        """Return non-sensitive information about the current engine.

        The password is never included.
        """
        url_obj = make_url(self.url)
        return {
            "drivername": url_obj.drivername,
            "username": url_obj.username,
            "host": url_obj.host,
            "port": url_obj.port,
            "database": url_obj.database,
            "url": url_obj.render_as_string(hide_password=True),
        }

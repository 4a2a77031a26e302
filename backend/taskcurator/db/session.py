"""Engine, session factory and the request-scoped session dependency.

Sessions never expire loaded objects on commit: services hand ORM rows
straight to the API layer and the Celery tasks after committing.
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from taskcurator.config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    options = {}
    # SQLite (tests) manages its own pool
    if make_url(settings.database_url).get_backend_name() != "sqlite":
        options = dict(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,
        )
    return create_async_engine(settings.database_url, echo=settings.debug, **options)


engine = build_engine(get_settings())

async_session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def init_db() -> None:
    """Fail fast at startup if the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    await engine.dispose()


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Yield a session that commits when the endpoint returns normally."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DBSession = Annotated[AsyncSession, Depends(get_db_session)]

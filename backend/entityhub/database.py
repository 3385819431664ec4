"""
EntityHub Backend — Engine, Sessions and Declarative Base
===========================================================

What:  The async engine, the session factory, the declarative `Base` every
       entity model inherits, and the per-request session dependency.
How:   One engine per process. Each request gets its own AsyncSession; the
       transaction commits when the route returns and rolls back when it raises,
       so a failed bulk operation leaves no partial writes behind.

Pooling:
    Server databases get a bounded pool (DB_POOL_SIZE + DB_MAX_OVERFLOW) with
    pre-ping and hourly recycling. SQLite (the test suite) is opened without
    pool arguments.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from entityhub.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# Documents returned by the facade are read after commit; keep attributes loaded
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Declarative base for the entity tables.

    Alembic reads `Base.metadata` for autogenerate; the tests call
    `create_all` on it.
    """


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Commits after the route handler returns; on any exception rolls back and
    re-raises so the global handlers can shape the error response.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close every pooled connection (application shutdown)."""
    await engine.dispose()

"""
PitchRoom – Async SQLAlchemy engine, session, and declarative base.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import settings


def _engine_options(url: str) -> dict:
    options = {"echo": settings.DEBUG, "future": True}
    if url.startswith("sqlite"):
        # One connection per session; chat sockets and tests open sessions from several loops
        options["poolclass"] = NullPool
    elif "postgresql" in url:
        # Prepared statements break behind PgBouncer in transaction mode
        options["connect_args"] = {"statement_cache_size": 0}
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


async def init_models(reset: bool = False) -> None:
    """Create every table, dropping the existing ones first when ``reset`` is set."""
    from app import models  # noqa: F401

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield a session that commits when the request succeeds and rolls back otherwise."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def new_uuid() -> str:
    """String UUID used as the primary key of every table."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

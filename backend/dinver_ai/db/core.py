from __future__ import annotations

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from ..settings import settings

engine = create_async_engine(
    settings.async_database_url,
    future=True,
    echo=False,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)

Base = declarative_base()


async def init_db() -> None:
    """Create missing tables; the assistant only reads them."""
    from . import models  # noqa: F401 - ensure models registered

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

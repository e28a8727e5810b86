from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import settings

# Base declarative
Base = declarative_base()


def make_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    # DATABASE_URL defaults to a local SQLite file; any async SQLAlchemy URL works
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.db_echo if echo is None else echo,
        future=True,
    )


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

"""Declarative base and the explicit database handle owned by the app."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from course_payments.core.config import Settings


class Base(DeclarativeBase):
    pass


@dataclass(frozen=True)
class Database:
    """Engine plus the session factory every store is built from."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]


async def init_db(settings: Settings, url: str | None = None) -> Database:
    """Connect to ``url`` (default: DATABASE_URL) and create missing tables.

    The caller owns the returned handle and must pass it to close_db().
    """
    engine = create_async_engine(
        url or settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    # Models register their tables on Base.metadata at import
    import course_payments.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return Database(engine=engine, session_factory=session_factory)


async def close_db(database: Database) -> None:
    await database.engine.dispose()

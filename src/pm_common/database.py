from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.pm_common.errors import TransactionFailedError


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    pool_pre_ping=True,
    # A settlement that cannot finish in time is rolled back by the server
    connect_args={
        "server_settings": {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)}
    },
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any failure.

    Driver-level failures (deadlock, serialization failure, timeout, lost
    connection) surface as TransactionFailedError; domain errors propagate
    unchanged. Either way nothing from the block is persisted.
    """
    try:
        yield db
        await db.commit()
    except DBAPIError as exc:
        await db.rollback()
        raise TransactionFailedError(str(exc.orig or exc)) from exc
    except Exception:
        await db.rollback()
        raise

"""Async SQLAlchemy session factories for the application and identity databases."""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Identity database: separate engine, shared with other applications
auth_engine = create_async_engine(
    settings.auth_database_url,
    echo=False,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

auth_session_factory = async_sessionmaker(
    auth_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def get_session_factory() -> async_sessionmaker:
    """Return the application session factory."""
    return async_session_factory


def get_auth_session_factory() -> async_sessionmaker:
    """Return the identity session factory (used by the user cache loader)."""
    return auth_session_factory


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield an application database session.

    Uses unit-of-work pattern: services use flush() for refreshing objects,
    commit happens once here at request end. If anything fails, all changes
    are rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_auth_session() -> AsyncGenerator[AsyncSession]:
    """Yield an identity database session (same unit-of-work semantics)."""
    async with auth_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

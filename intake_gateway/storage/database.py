"""
Database - SQLAlchemy async setup and session management

The engine is created from settings.database_url. Tables are created
on application startup by init_db().
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from intake_gateway.config import settings

# SQLAlchemy base for ORM models
Base = declarative_base()


def build_engine(database_url: str) -> AsyncEngine:
    """Async engine with health-checked pooled connections."""
    return create_async_engine(
        database_url,
        echo=(settings.log_level == "DEBUG"),
        pool_pre_ping=True,  # Test connection health before using
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine):
    """
    Initialize database schema

    Creates all tables defined in schema.py
    """
    # Register the ORM models on Base.metadata
    from intake_gateway.storage import schema  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine):
    """Drop all tables (for testing)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

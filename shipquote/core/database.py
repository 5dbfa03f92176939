"""
Database configuration and session management

Engine is created on first use so that importing models (or running unit
tests against a mocked session) never needs a database driver.
"""
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from shipquote.core.config import settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Create (once) and return the async engine."""
    global _engine
    if _engine is None:
        if settings.ENVIRONMENT == "production":
            # Production: Use connection pooling with configured limits
            pool_config = {
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_recycle": settings.DB_POOL_RECYCLE,
                "pool_pre_ping": True,  # Verify connections before use
            }
        else:
            pool_config = {
                "pool_size": 2,
                "max_overflow": 5,
                "pool_pre_ping": True,
            }

        _engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            **pool_config,
        )
    return _engine


def get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        async with get_db_session() as db:
            service = ShippingQuoteService(db)
            quote = await service.get_shipping_quote(store, request)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

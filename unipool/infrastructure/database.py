"""
Async SQLAlchemy engine and session factory.

The whole carpool state lives in one row of a key-value table, so the
default driver is ``aiosqlite`` against a local file.  Any async driver
URL (e.g. ``postgresql+asyncpg://``) works unchanged.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from unipool.config import settings

engine = create_async_engine(settings.database_url, echo=False)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

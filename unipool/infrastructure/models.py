"""
SQLAlchemy ORM models.

Tables
------
* ``kv_store`` -- one row per document key; ``value`` holds the JSON
  snapshot (``users``, ``rides``, ``bookings``) of the carpool state.
"""

from sqlalchemy import Column, DateTime, String, Text, func
from sqlalchemy.ext.asyncio import AsyncEngine

from .database import Base


class KeyValueModel(Base):
    __tablename__ = "kv_store"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables (local SQLite stores skip Alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

"""
Async engine, session factory and declarative base.

The schema itself belongs to the Alembic migrations under ``alembic/``;
this module only checks that it is there.
"""

import logging
import uuid
from datetime import datetime
from typing import AsyncGenerator, List

from sqlalchemy import DateTime, Uuid, func, inspect, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from marketplace.config import settings

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    "users",
    "properties",
    "property_images",
    "property_features",
    "property_feature_assignments",
    "neighborhoods",
    "saved_properties",
)


def _engine_options() -> dict:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_timeout": 30,
        "connect_args": {"server_settings": {"application_name": "marketplace_api"}},
    }


engine = create_async_engine(settings.database_url, echo=settings.debug, **_engine_options())

# Services keep using instances after commit when building responses
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """UUID primary key plus creation and modification timestamps for every table."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id})>"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; anything left uncommitted on error is rolled back."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def test_database_connection() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True


async def get_missing_tables() -> List[str]:
    async with engine.connect() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return [table for table in REQUIRED_TABLES if table not in existing]


async def verify_schema() -> bool:
    """
    Report whether the migrations have been applied.
    Nothing is created here; a missing table is logged with the command that fixes it.
    """
    try:
        missing = await get_missing_tables()
    except Exception as e:
        logger.error(f"Schema verification failed: {e}")
        return False

    if missing:
        logger.error(
            f"Database schema is incomplete, missing tables: {', '.join(missing)}. "
            "Run 'python migrate.py upgrade' before starting the service."
        )
        return False

    logger.info("Database schema verified")
    return True


async def close_db_connection():
    await engine.dispose()
    logger.info("Database connections closed")

# This project was developed with assistance from AI tools.
"""Async SQLAlchemy engine, session factory, and FastAPI session dependency."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import db_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = create_async_engine(
    db_settings.DATABASE_URL,
    echo=db_settings.SQL_ECHO,
    pool_pre_ping=True,
)

# expire_on_commit=False so ORM objects stay readable after commit in async code
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yield a request-scoped session."""
    async with SessionLocal() as session:
        yield session


class DatabaseService:
    """Thin wrapper used by the health check to check connectivity."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def health_check(self) -> dict:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "healthy"}
        except Exception as exc:
            logger.warning("Database health check failed: %s", exc)
            return {"status": "unhealthy", "error": str(exc)}


db_service = DatabaseService(engine=engine)


async def get_db_service() -> DatabaseService:
    """FastAPI dependency: return the process-wide DatabaseService."""
    return db_service

"""
Database Connection Module
Handles the database connection using the SQLAlchemy async engine.

PostgreSQL (psycopg async) in staging/production; tests point DATABASE_URL
at an in-memory SQLite database through aiosqlite.
"""

import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from takeaway.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()
DATABASE_URL = settings.database_url


def engine_options(url: str, echo: bool = False) -> dict:
    """Engine keyword arguments for the given URL."""
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database survives between sessions
        return {
            "echo": echo,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "echo": echo,
        "pool_size": 5,  # Connection pool size
        "max_overflow": 10,  # Extra connections when pool is full
        "pool_pre_ping": True,
    }


# Create async engine
engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL, echo=settings.debug))

# Session factory - creates new database sessions
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Objects remain accessible after commit
)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register models on Base.metadata
    from takeaway import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")

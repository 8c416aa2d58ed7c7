# ==== DATABASE CONNECTION AND SESSION MANAGEMENT ==== #

"""
Database connection and session management for the back office API.

Async SQLAlchemy engine and session lifecycle. PostgreSQL URLs are normalised
to the asyncpg driver; SQLite URLs (local development and tests) share a
single in-process connection.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from backoffice.settings import settings
from backoffice.observability.metrics import db_connections_active


# ==== SQLALCHEMY CONFIGURATION ==== #

# SQLAlchemy base for model definitions
Base = declarative_base()

# Global engine and session factory instances
engine: AsyncEngine | None = None
SessionLocal: async_sessionmaker[AsyncSession] | None = None


def normalize_database_url(db_url: str) -> str:
    """Force the asyncpg driver on PostgreSQL URLs.

    Args:
        db_url: Configured database URL

    Returns:
        URL usable by ``create_async_engine``
    """
    if db_url.startswith("postgresql+asyncpg://") or db_url.startswith("sqlite"):
        return db_url

    db_url = db_url.replace("postgresql+psycopg://", "postgresql+asyncpg://")
    db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")
    db_url = db_url.replace("postgres://", "postgresql+asyncpg://")

    # asyncpg spells the SSL flag differently
    if "sslmode=require" in db_url:
        db_url = db_url.replace("sslmode=require", "ssl=require")

    return db_url


# ==== DATABASE INITIALIZATION ==== #


def init_database() -> None:
    """
    Initialize database engine and session factory.

    Idempotent: a second call keeps the existing engine.
    """
    global engine, SessionLocal

    if engine is not None:
        return

    db_url = normalize_database_url(settings.DATABASE_URL)

    if db_url.startswith("sqlite"):
        # --► SINGLE SHARED CONNECTION FOR SQLITE
        engine = create_async_engine(
            db_url,
            echo=settings.DATABASE_ECHO,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        engine = create_async_engine(
            db_url,
            echo=settings.DATABASE_ECHO,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
            connect_args={
                "server_settings": {
                    "application_name": settings.SERVICE_NAME,
                    "timezone": "UTC"
                }
            },
        )

    SessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session with automatic commit and cleanup.

    Yields:
        AsyncSession: Database session

    Raises:
        Exception: Re-raised after rollback when the block fails
    """
    if SessionLocal is None:
        init_database()

    async with SessionLocal() as session:
        db_connections_active.inc()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            db_connections_active.dec()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    The request's work is committed once the handler returns and rolled back
    if it raises, so every request is a single transaction.

    Yields:
        AsyncSession: Database session for request handling
    """
    async with get_session() as session:
        yield session


async def create_all() -> None:
    """Create every table known to the models (development and tests)."""
    import backoffice.storage.models  # noqa: F401  registers tables

    if engine is None:
        init_database()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all() -> None:
    """Drop every table known to the models."""
    if engine is None:
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def close_database() -> None:
    """Close database connections on shutdown."""
    global engine, SessionLocal
    if engine is not None:
        await engine.dispose()
        engine = None
        SessionLocal = None

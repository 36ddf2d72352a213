"""
Database connection management.

Provides the async SQLAlchemy engine, session factory, schema creation
and the FastAPI dependency for database session injection.

Dependencies: sqlalchemy, aiosqlite / asyncpg, pagewise.configs
System role: Database connection lifecycle management
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pagewise.boundary.db.base import Base
from pagewise.configs import get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Cascading deletes rely on SQLite enforcing foreign keys per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for_url(url: str, echo: bool = False, **engine_kwargs) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite engines get foreign-key enforcement on every new connection;
    other dialects receive the pooling keyword arguments unchanged.

    Args:
        url: SQLAlchemy async database URL
        echo: Echo SQL statements to logs
        **engine_kwargs: Extra create_async_engine arguments

    Returns:
        AsyncEngine: Configured async engine
    """
    engine = create_async_engine(url, echo=echo, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_async_engine() -> AsyncEngine:
    """
    Return the process-wide async engine, creating it on first use.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails
    """
    global _engine
    if _engine is None:
        db_config = get_settings().database
        if db_config.is_sqlite:
            _engine = create_engine_for_url(db_config.url, echo=db_config.echo_sql)
        else:
            _engine = create_engine_for_url(
                db_config.url,
                echo=db_config.echo_sql,
                pool_size=db_config.pool_size,
                max_overflow=db_config.max_overflow,
                pool_timeout=db_config.pool_timeout,
                pool_pre_ping=True,
            )
    return _engine


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Return the async session factory bound to the process-wide engine.

    Sessions use autoflush=False and expire_on_commit=False for explicit
    transaction control; callers commit their own units of work.

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_async_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


async def init_models(engine: AsyncEngine | None = None) -> None:
    """
    Create all tables (and the SQLite full-text index) if missing.

    Args:
        engine: Engine to use, defaults to the process-wide engine
    """
    # Importing the models package registers every table on Base.metadata.
    import pagewise.boundary.db.models  # noqa: F401

    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose the process-wide engine and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection with automatic cleanup.

    Yields:
        AsyncSession: Async SQLAlchemy database session (scoped to request lifetime)

    Usage:
        from fastapi import Depends

        @router.get("/documents/{id}")
        async def get_document(id: int, db: AsyncSession = Depends(get_async_db)):
            return await document_crud.get_by_id(db, id)
    """
    async with get_async_session_factory()() as session:
        yield session

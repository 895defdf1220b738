"""
Trip Track Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine (pooled for server databases), provides a
       session dependency that commits on success and rolls back on error.
Who:   Services receive the session as their first argument; the HTTP shell
       injects it via FastAPI's dependency system.
When:  Engine is created at module import; sessions are created per-request.

Set semantics:
    Followers, likes, bookmarks, participants and read receipts are rows in
    association tables keyed by both ids. `insert_ignore` adds a member with
    a single INSERT ... ON CONFLICT DO NOTHING, so the storage layer decides
    "already present" atomically instead of a read-check-then-write.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import Table, and_, delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from triptrack.config import settings


# ── Engine Configuration ──────────────────────────────────────────────────
def _engine_options() -> Dict[str, Any]:
    """
    Pool options for the configured database.

    SQLite (tests, local development) rejects pool sizing arguments, so they
    are only passed to server databases.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine: AsyncEngine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: attributes stay readable after the request commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata)."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (which calls one service method)
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Services only flush(); the commit here is the single point where a
    request's writes become durable.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Set Helpers ───────────────────────────────────────────────────────────
async def insert_ignore(db: AsyncSession, table: Table, values: Dict[str, Any]) -> bool:
    """
    Add a row to an association table unless it already exists.

    Returns:
        True if a row was inserted, False if the key was already present.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(table).values(**values).on_conflict_do_nothing()
    elif dialect == "sqlite":
        stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing()
    else:
        # No portable upsert: fall back to check-then-insert
        key = and_(*(table.c[name] == value for name, value in values.items()))
        exists = await db.execute(select(table).where(key).limit(1))
        if exists.first() is not None:
            return False
        stmt = insert(table).values(**values)
    result = await db.execute(stmt)
    return result.rowcount > 0


async def delete_row(db: AsyncSession, table: Table, values: Dict[str, Any]) -> bool:
    """
    Remove a row from an association table.

    Returns:
        True if a row was removed, False if no such row existed.
    """
    key = and_(*(table.c[name] == value for name, value in values.items()))
    result = await db.execute(delete(table).where(key))
    return result.rowcount > 0


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(bind: AsyncEngine = engine) -> None:
    """Create any missing tables from the ORM metadata."""
    # Registers every model with Base.metadata
    import triptrack.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()

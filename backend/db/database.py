"""
Database configuration and session management.

SQLite vs PostgreSQL Compatibility Notes:
-----------------------------------------
SQLite (aiosqlite) is used for development and tests, PostgreSQL (asyncpg)
in production. Everything the position manager relies on works on both:

1. UniqueConstraint(sequence_id, position) - enforced per row on both, so
   position shifts are always issued one row at a time in a safe order
2. SELECT ... FOR UPDATE - rendered on PostgreSQL, silently omitted on SQLite
   (SQLite serializes writers on the whole database anyway)
3. ForeignKey with ondelete - SQLite requires PRAGMA foreign_keys=ON
4. Row-level security, statement_timeout and lock_timeout exist only on
   PostgreSQL; the transaction hook below is a no-op elsewhere
"""

import logging
import uuid
from typing import Optional

from config import get_settings
from sqlalchemy import event, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Session

logger = logging.getLogger(__name__)
settings = get_settings()

# Key under which the authenticated user id is kept in Session.info
REQUEST_USER_KEY = "request_user_id"


def normalize_database_url(url: str) -> str:
    """Convert URL for async drivers."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def build_engine(url: str, **overrides) -> AsyncEngine:
    """
    Create an async engine with the per-backend settings this app needs.

    PostgreSQL gets a small pre-pinged pool; SQLite gets foreign keys
    enabled on every connection (it does not enforce them by default).
    """
    url = normalize_database_url(url)
    is_sqlite = url.startswith("sqlite")

    engine_kwargs: dict = {"echo": False}
    if not is_sqlite:
        # pool_size + max_overflow = 15 connections max; keep this below
        # PostgreSQL's max_connections when running several workers.
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10
    engine_kwargs.update(overrides)

    new_engine = create_async_engine(url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(new_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


_TRANSACTION_CONTEXT_SQL = text(
    "SELECT set_config('statement_timeout', :statement_timeout, true), "
    "set_config('lock_timeout', :lock_timeout, true), "
    "set_config('app.current_user_id', :user_id, true)"
)


def _transaction_context_params(session_info: dict) -> dict:
    user_id = session_info.get(REQUEST_USER_KEY)
    return {
        "statement_timeout": f"{settings.DB_STATEMENT_TIMEOUT_MS}ms",
        "lock_timeout": f"{settings.DB_LOCK_TIMEOUT_MS}ms",
        "user_id": str(user_id) if user_id else "",
    }


@event.listens_for(Session, "after_begin")
def apply_transaction_context(session, transaction, connection):
    """
    Scope timeouts and the row-level-security user to every new transaction.

    The values are transaction-local (is_local=true), so they vanish on
    commit/rollback and a pooled connection never leaks another user's id.
    """
    if connection.dialect.name != "postgresql":
        return
    connection.execute(_TRANSACTION_CONTEXT_SQL, _transaction_context_params(session.info))


async def bind_request_user(session: AsyncSession, user_id: uuid.UUID) -> None:
    """
    Attach the authenticated user to the session for row-level security.

    Future transactions pick it up in `apply_transaction_context`; if a
    transaction is already open it is applied immediately.
    """
    session.info[REQUEST_USER_KEY] = user_id
    bind = session.bind
    if bind is None or bind.dialect.name != "postgresql":
        return
    if session.in_transaction():
        await session.execute(_TRANSACTION_CONTEXT_SQL, _transaction_context_params(session.info))


async def get_db():
    """
    Dependency that provides one session per request.

    Routes/services call db.commit() explicitly. Anything left uncommitted
    (error, client disconnect, cancellation) is discarded when the session
    closes, so a half-applied reorder never persists.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def seed_lookup_tables(session: AsyncSession) -> int:
    """Insert missing difficulty levels and pose types. Returns rows added."""
    from models.pose import DIFFICULTY_NAMES, POSE_TYPE_NAMES, Difficulty, PoseType

    added = 0
    for model, names in ((Difficulty, DIFFICULTY_NAMES), (PoseType, POSE_TYPE_NAMES)):
        result = await session.execute(select(model.name))
        existing = set(result.scalars().all())
        for name in names:
            if name not in existing:
                session.add(model(name=name))
                added += 1
    if added:
        await session.flush()
    return added


async def init_db(target_engine: Optional[AsyncEngine] = None):
    """Create tables (when enabled) and seed the lookup tables."""
    # Import models so they register on Base.metadata
    from models import pose, pose_version, sequence, user  # noqa: F401

    target_engine = target_engine or engine

    if settings.AUTO_CREATE_SCHEMA:
        async with target_engine.begin() as conn:
            if target_engine.dialect.name == "postgresql":
                # Serialize schema creation when several workers start at once
                await conn.execute(text("SELECT pg_advisory_xact_lock(1)"))
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    session_factory = async_sessionmaker(target_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        added = await seed_lookup_tables(session)
        await session.commit()

    if added:
        logger.info(f"Seeded {added} lookup rows")
    logger.info("Database initialized successfully")

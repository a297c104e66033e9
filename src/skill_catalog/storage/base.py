"""
Base module for database connection and metadata.

This module defines the SQLAlchemy metadata object shared by the storage
modules and the helpers that create an engine and the schema.
"""

import logging
from typing import Any

from sqlalchemy import MetaData, event, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool, StaticPool
from sqlalchemy.pool.base import _ConnectionRecord

logger = logging.getLogger(__name__)

# Define shared metadata object
metadata = MetaData()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///skills.db"


def _is_sqlite_memory_url(database_url: str) -> bool:
    url = make_url(database_url)
    return (
        url.database in (None, "", ":memory:")
        or url.query.get("mode") == "memory"
    )


def create_engine_with_sqlite_optimizations(database_url: str) -> AsyncEngine:
    """Create engine with SQLite optimizations if applicable."""
    is_sqlite = database_url.startswith("sqlite")
    # An in-memory database only exists on its one connection, so it has to be
    # shared. File databases get a connection (and transaction) per checkout.
    # NullPool avoids event loop affinity issues with server databases.
    pool_class: type[Pool]
    if is_sqlite and _is_sqlite_memory_url(database_url):
        pool_class = StaticPool
    elif is_sqlite:
        pool_class = AsyncAdaptedQueuePool
    else:
        pool_class = NullPool

    engine = create_async_engine(
        database_url,
        echo=False,
        connect_args={
            "timeout": 30,  # 30 second busy timeout for SQLite
            "check_same_thread": False,
        }
        if is_sqlite
        else {},
        pool_pre_ping=pool_class != NullPool,
        poolclass=pool_class,
    )

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(
            dbapi_connection: Any,  # noqa: ANN401 # DBAPI connection type varies
            connection_record: _ConnectionRecord,
        ) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA busy_timeout=30000")  # 30 second timeout
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                logger.debug("Applied SQLite optimizations")
            finally:
                cursor.close()

    return engine


async def init_db(engine: AsyncEngine) -> None:
    """Create any catalog tables that do not exist yet.

    Databases managed by an external migration runner already have the
    schema; for those this is a no-op.
    """
    # Importing the table module registers it with the shared metadata.
    from skill_catalog.storage import skills as _skills  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info(f"Catalog schema ensured on {engine.url!r}")

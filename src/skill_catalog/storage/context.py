"""
Database context manager for storage operations.

This module provides a context manager and utilities for database operations,
enabling dependency injection for testing and centralizing retry logic.
"""

import asyncio
import logging
import random
from types import TracebackType
from typing import TYPE_CHECKING, Any

from sqlalchemy import TextClause
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import DBAPIError, IntegrityError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from sqlalchemy.sql import Delete, Insert, Select, Update

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from skill_catalog.storage.repositories import SkillsRepository

logger = logging.getLogger(__name__)


class DatabaseContext:
    """
    Context manager for database operations with retry logic.

    Entering the context starts a transaction; leaving it commits, or rolls
    back if the block raised. Everything executed through one context is a
    single atomic unit.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        max_retries: int = 3,
        base_delay: float = 0.5,
    ) -> None:
        """
        Initialize the database context.

        Args:
            engine: SQLAlchemy AsyncEngine shared by the application.
            max_retries: Maximum number of retries for database operations.
            base_delay: Base delay in seconds for exponential backoff.
        """
        self.engine = engine
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.conn: AsyncConnection | None = None
        self._transaction_cm: AbstractAsyncContextManager[AsyncConnection] | None = None

        # Repository instances (lazy-loaded)
        self._skills: SkillsRepository | None = None

    async def __aenter__(self) -> "DatabaseContext":
        """Enter the async context manager, starting a transaction."""
        if self._transaction_cm is not None:
            raise RuntimeError("DatabaseContext is not reentrant")

        self._transaction_cm = self.engine.begin()
        self.conn = await self._transaction_cm.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the async context manager, committing or rolling back the transaction."""
        if self._transaction_cm is None:
            return

        try:
            # The underlying transaction context manager handles commit/rollback
            await self._transaction_cm.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self.conn = None
            self._transaction_cm = None

    async def execute_with_retry(
        self,
        query: Select | Insert | Update | Delete | TextClause,
        params: dict[str, Any] | None = None,
    ) -> CursorResult:
        """
        Execute a query with retry logic for transient database errors.

        Args:
            query: The SQLAlchemy query to execute.
            params: Optional parameters for the query.

        Returns:
            The SQLAlchemy Result object.

        Raises:
            RuntimeError: If there is no active database connection.
            DBAPIError: If the error is not retryable or all retries failed.
        """
        if self.conn is None:
            raise RuntimeError("No active database connection")

        for attempt in range(self.max_retries):
            try:
                if params:
                    return await self.conn.execute(query, params)
                return await self.conn.execute(query)
            except DBAPIError as e:
                # Syntax errors and constraint violations are never retried
                if isinstance(e, ProgrammingError | IntegrityError) or isinstance(
                    e.orig, ProgrammingError
                ):
                    logger.error(
                        f"Non-retryable database error encountered: {e}",
                        exc_info=True,
                    )
                    raise

                logger.warning(
                    f"Retryable DBAPIError (attempt {attempt + 1}/{self.max_retries}): {e}."
                )
                if attempt == self.max_retries - 1:
                    logger.error(
                        "Max retries exceeded for retryable error. Raising error."
                    )
                    raise

                delay = self.base_delay * (2**attempt) + random.uniform(
                    0, self.base_delay
                )
                logger.info(f"Retrying in {delay:.2f} seconds...")
                await asyncio.sleep(delay)

        raise RuntimeError("Database operation failed after multiple retries")

    @property
    def skills(self) -> "SkillsRepository":
        """Get the skills repository instance."""
        if self._skills is None:
            from skill_catalog.storage.repositories import SkillsRepository

            self._skills = SkillsRepository(self)
        return self._skills

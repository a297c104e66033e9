"""Persistence for the skill catalog."""

from skill_catalog.storage.base import (
    DEFAULT_DATABASE_URL,
    create_engine_with_sqlite_optimizations,
    init_db,
    metadata,
)
from skill_catalog.storage.context import DatabaseContext
from skill_catalog.storage.skills import skills_table

__all__ = [
    "DEFAULT_DATABASE_URL",
    "DatabaseContext",
    "create_engine_with_sqlite_optimizations",
    "init_db",
    "metadata",
    "skills_table",
]

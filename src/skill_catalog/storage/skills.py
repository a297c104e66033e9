"""
Table definition for the persisted skill catalog.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    String,
    Table,
    Text,
    UniqueConstraint,
)

from skill_catalog.storage.base import metadata

skills_table = Table(
    "skills",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID, never reused
    Column("source_kind", String(20), nullable=False),  # "official", "custom"
    Column("identity_key", String(255), nullable=False),  # subdirectory name
    Column("name", String, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("command", String, nullable=True),
    Column("verified", Boolean, nullable=False, default=False),
    Column("body_text", Text, nullable=False, default=""),
    Column("is_enabled", Boolean, nullable=False, default=True),
    Column("file_path", Text, nullable=False),
    Column(
        "created_at",
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    ),
    Column(
        "updated_at",
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    ),
    UniqueConstraint("source_kind", "identity_key", name="uq_skills_identity"),
)

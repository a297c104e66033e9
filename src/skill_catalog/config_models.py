"""Pydantic models for skill catalog configuration.

Configuration priority (lowest to highest):
1. Code defaults (defined in model Field defaults)
2. config.yaml file
3. Environment variables
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from skill_catalog.skills.parser import DEFAULT_MAX_DEFINITION_BYTES
from skill_catalog.skills.scanner import DEFINITION_FILENAME
from skill_catalog.storage.base import DEFAULT_DATABASE_URL


class CatalogConfig(BaseModel):
    """Where skills live and where the catalog is persisted."""

    model_config = ConfigDict(extra="forbid")

    bundled_skills_path: Path
    user_skills_path: Path
    database_url: str = DEFAULT_DATABASE_URL
    definition_filename: str = Field(default=DEFINITION_FILENAME, min_length=1)
    max_definition_bytes: int = Field(default=DEFAULT_MAX_DEFINITION_BYTES, gt=0)
    db_max_retries: int = Field(default=3, ge=1)
    db_base_delay: float = Field(default=0.5, ge=0)
